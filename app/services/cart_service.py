import asyncio
import logging

from pydantic import ValidationError

from app.core.image_urls import get_full_image_url
from app.core.marketplace_client import BackendError, MarketplaceClient
from app.schemas.cart import CartLine, CartSnapshot, CartSnapshotItem
from app.schemas.product import ProductRead

logger = logging.getLogger(__name__)


class CartService:
    """
    Prices the cart against the marketplace catalog.

    Responsibilities:
      - fetch product details for every cart line (concurrently)
      - skip lines whose product cannot be fetched or parsed
      - snapshot name, unit price, image and stock per line
      - compute total_quantity and total_price once
    """

    def __init__(self, catalog: MarketplaceClient):
        self.catalog = catalog

    # ---- internal helpers ----

    async def _fetch_product(self, product_id: str) -> ProductRead | None:
        try:
            data = await self.catalog.get_product(product_id)
        except BackendError as exc:
            logger.warning("Skipping cart line %s: %s", product_id, exc.message)
            return None

        try:
            return ProductRead.model_validate(data)
        except ValidationError:
            logger.warning("Skipping cart line %s: unexpected product data", product_id)
            return None

    # ---- public operations ----

    async def build_snapshot(self, lines: list[CartLine]) -> CartSnapshot:
        """
        Return the priced, immutable view of `lines`.

        An empty cart yields an empty snapshot without any catalog call.
        """
        if not lines:
            return CartSnapshot()

        products = await asyncio.gather(
            *(self._fetch_product(line.product_id) for line in lines)
        )

        items: list[CartSnapshotItem] = []
        for line, product in zip(lines, products):
            if product is None:
                continue
            items.append(
                CartSnapshotItem(
                    product_id=line.product_id,
                    name=product.name,
                    price=product.price,
                    quantity=line.quantity,
                    image_url=get_full_image_url(product.image_url),
                    stock=product.stock,
                )
            )

        return CartSnapshot.from_items(items)
