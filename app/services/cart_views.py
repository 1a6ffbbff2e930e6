"""
Cart-aware display state.

These are the small pieces of storefront UI state derived from the cart:
the header badge, the product card "add" button and the product detail
quantity selector. They only talk to the CartStore and its notifier.
"""

from app.schemas.product import ProductRead
from app.services.cart_store import CartStore


class CartBadge:
    """
    Header cart counter.

    Re-reads the store on every cart change (same context or another one).
    Hidden for guests and non-customers, and when the cart is empty.
    """

    def __init__(self, store: CartStore, is_customer: bool = True):
        self.store = store
        self.is_customer = is_customer
        self.count = store.count()
        self._unsubscribe = store.notifier.subscribe(self.refresh)

    def refresh(self) -> None:
        self.count = self.store.count()

    @property
    def visible(self) -> bool:
        return self.is_customer and self.count > 0

    def close(self) -> None:
        self._unsubscribe()


def add_from_product_card(store: CartStore, product: ProductRead) -> str:
    """
    "Add to Cart" on a product card: one unit, returns the confirmation.
    """
    store.add(product.id, 1)
    return f"{product.name} has been added to your cart!"


class QuantitySelector:
    """
    Quantity picker on the product detail page.

    Starts at 1, never goes below 1 nor above the product stock.
    """

    def __init__(self, store: CartStore, product: ProductRead):
        self.store = store
        self.product = product
        self.quantity = 1

    @property
    def available(self) -> bool:
        return self.product.stock > 0

    def increment(self) -> int:
        self.quantity = min(self.product.stock, self.quantity + 1)
        self.quantity = max(1, self.quantity)
        return self.quantity

    def decrement(self) -> int:
        self.quantity = max(1, self.quantity - 1)
        return self.quantity

    def add_to_cart(self) -> str:
        self.store.add(self.product.id, self.quantity)
        verb = "have" if self.quantity > 1 else "has"
        return f"{self.quantity} {self.product.name} {verb} been added to your cart!"
