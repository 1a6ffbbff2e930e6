import json
import logging

from app.core.config import get_settings
from app.schemas.cart import CartLine
from app.services.cart_notifier import CartNotifier
from app.services.storage import KeyValueStorage

logger = logging.getLogger(__name__)

settings = get_settings()


def _line_product_id(raw: dict) -> str | None:
    """
    Resolve the product id of a persisted line.

    A nested product reference wins over the line's own id fields.
    """
    product = raw.get("product")
    if isinstance(product, dict):
        nested = product.get("_id") or product.get("id")
        if nested:
            return str(nested)
    for key in ("productId", "_id", "id"):
        value = raw.get(key)
        if value:
            return str(value)
    return None


def normalize_lines(data) -> list[CartLine]:
    """
    Turn whatever was persisted into flat, valid cart lines.

    - non-list payloads become an empty cart
    - lines without a product id or with quantity < 1 are dropped
    - duplicate product ids are merged (quantities summed)
    """
    if not isinstance(data, list):
        return []

    quantities: dict[str, int] = {}
    for raw in data:
        if not isinstance(raw, dict):
            continue
        product_id = _line_product_id(raw)
        quantity = raw.get("quantity")
        if product_id is None or isinstance(quantity, bool):
            continue
        if not isinstance(quantity, int) or quantity < 1:
            continue
        quantities[product_id] = quantities.get(product_id, 0) + quantity

    return [CartLine(product_id=pid, quantity=qty) for pid, qty in quantities.items()]


class CartStore:
    """
    Sole owner of the cart persisted in a key-value storage context.

    Rules:
      - at most one line per product, every quantity >= 1
      - the stored value is re-read on every call (no in-memory copy)
      - unreadable stored data is treated as an empty cart
      - each mutation is read -> modify -> persist -> notify under the
        storage area's lock, and publishes exactly once
    """

    def __init__(
        self,
        storage: KeyValueStorage,
        notifier: CartNotifier,
        key: str | None = None,
    ):
        self.storage = storage
        self.notifier = notifier
        self.key = key or settings.CART_STORAGE_KEY

    # ---- internal helpers ----

    def _load(self) -> list[CartLine]:
        raw = self.storage.get_item(self.key)
        if raw is None:
            return []
        try:
            data = json.loads(raw)
        except (TypeError, ValueError):
            logger.debug("Ignoring unreadable cart data under %s", self.key)
            return []
        return normalize_lines(data)

    def _save(self, lines: list[CartLine]) -> None:
        payload = [line.model_dump(by_alias=True) for line in lines]
        self.storage.set_item(self.key, json.dumps(payload))
        self.notifier.publish()

    # ---- reads ----

    def read(self) -> list[CartLine]:
        return self._load()

    def count(self) -> int:
        return sum(line.quantity for line in self._load())

    def contains(self, product_id: str) -> bool:
        return any(line.product_id == product_id for line in self._load())

    # ---- mutations ----

    def add(self, product_id: str, quantity: int = 1) -> list[CartLine]:
        """
        Add `quantity` units of a product, merging into an existing line.

        Quantities below 1 change nothing but still count as a mutation.
        """
        with self.storage.locked():
            lines = self._load()
            if quantity >= 1:
                for idx, line in enumerate(lines):
                    if line.product_id == product_id:
                        lines[idx] = CartLine(
                            product_id=product_id, quantity=line.quantity + quantity
                        )
                        break
                else:
                    lines.append(CartLine(product_id=product_id, quantity=quantity))
                logger.debug("Added %s x %s to cart", quantity, product_id)

            self._save(lines)
        return lines

    def update(self, product_id: str, quantity: int) -> list[CartLine]:
        """
        Set the quantity of a line exactly. Below 1 removes the line.
        Lines for other products are untouched; absent products are ignored.
        """
        if quantity < 1:
            return self.remove(product_id)

        with self.storage.locked():
            lines = [
                CartLine(product_id=product_id, quantity=quantity)
                if line.product_id == product_id
                else line
                for line in self._load()
            ]
            self._save(lines)
        return lines

    def remove(self, product_id: str) -> list[CartLine]:
        with self.storage.locked():
            lines = [line for line in self._load() if line.product_id != product_id]
            self._save(lines)
        return lines

    def clear(self) -> None:
        with self.storage.locked():
            self.storage.remove_item(self.key)
            self.notifier.publish()
        logger.debug("Cart cleared")
