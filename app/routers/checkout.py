from fastapi import APIRouter, Depends, HTTPException, status

from app.core.auth import Principal, require_customer
from app.core.marketplace_client import MarketplaceClient
from app.dependencies import get_cart_store, get_marketplace_client
from app.schemas.checkout import CheckoutRequest, CheckoutView
from app.services.cart_service import CartService
from app.services.cart_store import CartStore
from app.services.checkout_service import CheckoutOrchestrator

router = APIRouter(prefix="/checkout", tags=["Checkout"])


@router.post("", response_model=CheckoutView)
async def checkout(
    payload: CheckoutRequest,
    principal: Principal = Depends(require_customer),
    store: CartStore = Depends(get_cart_store),
    client: MarketplaceClient = Depends(get_marketplace_client),
):
    """
    Place an order from the cart snapshot and the shipping form.

    - 409 if there is nothing to check out.
    - 200 otherwise; the body tells whether the order was placed
      (view='complete') or the form needs attention (errors /
      submit_error). The cart is only cleared on success.
    """
    snapshot = payload.snapshot
    if snapshot is None:
        snapshot = await CartService(client).build_snapshot(store.read())

    if snapshot.is_empty:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Your cart is empty",
        )

    orchestrator = CheckoutOrchestrator(
        snapshot=snapshot,
        cart_store=store,
        orders=client,
        principal=principal,
        form=payload.form,
    )
    return await orchestrator.submit()
