from fastapi import Depends, HTTPException, status

from app.core.auth import Principal, get_current_principal, require_customer
from app.core.config import get_settings
from app.core.marketplace_client import BackendError, MarketplaceClient
from app.database import get_engine
from app.services.cart_notifier import CartNotifier
from app.services.cart_store import CartStore
from app.services.storage import DatabaseStorage

settings = get_settings()


def get_cart_store(
    principal: Principal = Depends(require_customer),
    engine=Depends(get_engine),
):
    """
    FastAPI dependency yielding the caller's CartStore.

    Each request is its own storage context on the customer's area, so
    writes made here reach the other open contexts of that customer.
    """
    storage = DatabaseStorage(engine, area=principal.id)
    notifier = CartNotifier()
    detach = notifier.bridge(storage, settings.CART_STORAGE_KEY)
    try:
        yield CartStore(storage, notifier)
    finally:
        detach()
        storage.close()


async def get_marketplace_client(
    principal: Principal | None = Depends(get_current_principal),
):
    """
    FastAPI dependency yielding a marketplace client carrying the caller's token.
    """
    token = principal.token if principal else None
    async with MarketplaceClient(token=token) as client:
        yield client


def backend_http_error(exc: BackendError) -> HTTPException:
    """
    Map a marketplace failure onto the HTTP error returned to our caller.

    No response, or a 2xx body flagged `success: false`, becomes 502.
    """
    status_code = exc.status_code
    if status_code is None or status_code < 400:
        status_code = status.HTTP_502_BAD_GATEWAY
    return HTTPException(status_code=status_code, detail=exc.message)
