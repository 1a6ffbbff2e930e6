from fastapi import APIRouter, Depends

from app.core.marketplace_client import BackendError, MarketplaceClient
from app.dependencies import backend_http_error, get_cart_store, get_marketplace_client
from app.schemas.cart import (
    CartCount,
    CartItemCreate,
    CartItemUpdate,
    CartLine,
    CartSnapshot,
)
from app.services.cart_service import CartService
from app.services.cart_store import CartStore

router = APIRouter(prefix="/cart", tags=["Cart"])


@router.get("", response_model=list[CartLine])
def get_my_cart(store: CartStore = Depends(get_cart_store)):
    """
    Get the current customer's cart lines.

    Auth:
      - Only role='customer' can access.
    """
    return store.read()


@router.get("/count", response_model=CartCount)
def get_cart_count(store: CartStore = Depends(get_cart_store)):
    """
    Badge value: total number of units in the cart.
    """
    return CartCount(count=store.count())


@router.get("/summary", response_model=CartSnapshot)
async def get_cart_summary(
    store: CartStore = Depends(get_cart_store),
    client: MarketplaceClient = Depends(get_marketplace_client),
):
    """
    Price the cart against the catalog.

    The returned snapshot is what checkout submits; prices are locked here.
    """
    return await CartService(client).build_snapshot(store.read())


@router.post("", response_model=list[CartLine])
def add_to_cart(
    payload: CartItemCreate,
    store: CartStore = Depends(get_cart_store),
):
    """
    Add a product to the cart (merging with an existing line).

    Returns the updated cart lines.
    """
    return store.add(payload.product_id, payload.quantity)


@router.patch("/{product_id}", response_model=list[CartLine])
def update_cart_item(
    product_id: str,
    payload: CartItemUpdate,
    store: CartStore = Depends(get_cart_store),
):
    """
    Set the quantity of a product in the cart; below 1 removes it.

    Returns the updated cart lines.
    """
    return store.update(product_id, payload.quantity)


@router.delete("/{product_id}", response_model=list[CartLine])
def remove_cart_item(
    product_id: str,
    store: CartStore = Depends(get_cart_store),
):
    """
    Remove a product from the cart.

    Returns the updated cart lines.
    """
    return store.remove(product_id)


@router.delete("", response_model=list[CartLine])
def clear_cart(store: CartStore = Depends(get_cart_store)):
    """
    Clear the entire cart.
    """
    store.clear()
    return []


@router.post("/sync")
async def sync_cart(
    store: CartStore = Depends(get_cart_store),
    client: MarketplaceClient = Depends(get_marketplace_client),
):
    """
    Push the current cart lines to the marketplace (POST /api/cart).
    """
    items = [line.model_dump(by_alias=True) for line in store.read()]
    try:
        return await client.sync_cart(items)
    except BackendError as exc:
        raise backend_http_error(exc)
