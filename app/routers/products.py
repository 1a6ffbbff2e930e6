from fastapi import APIRouter, Depends, Request

from app.core.auth import require_customer
from app.core.image_urls import get_full_image_url
from app.core.marketplace_client import BackendError, MarketplaceClient
from app.dependencies import backend_http_error, get_marketplace_client

router = APIRouter(tags=["Catalog"])


def _with_full_image_url(product):
    if isinstance(product, dict):
        product = {**product, "fullImageUrl": get_full_image_url(product.get("imageUrl"))}
    return product


# -------- Public endpoints --------


@router.get("/products")
async def list_products(
    request: Request,
    client: MarketplaceClient = Depends(get_marketplace_client),
):
    """
    List catalog products.

    - Public endpoint; query parameters are forwarded unchanged.
    """
    try:
        return await client.list_products(dict(request.query_params))
    except BackendError as exc:
        raise backend_http_error(exc)


@router.get("/products/{product_id}")
async def get_product(
    product_id: str,
    client: MarketplaceClient = Depends(get_marketplace_client),
):
    """
    Get a single product, with its absolute image URL.
    """
    try:
        product = await client.get_product(product_id)
    except BackendError as exc:
        raise backend_http_error(exc)
    return _with_full_image_url(product)


# -------- Customer wishlist --------


@router.get("/wishlist", dependencies=[Depends(require_customer)])
async def get_wishlist(client: MarketplaceClient = Depends(get_marketplace_client)):
    """
    Current customer's wishlist.
    """
    try:
        return await client.get_wishlist()
    except BackendError as exc:
        raise backend_http_error(exc)


@router.post("/wishlist/{product_id}", dependencies=[Depends(require_customer)])
async def add_to_wishlist(
    product_id: str,
    client: MarketplaceClient = Depends(get_marketplace_client),
):
    try:
        return await client.add_to_wishlist(product_id)
    except BackendError as exc:
        raise backend_http_error(exc)


@router.delete("/wishlist/{product_id}", dependencies=[Depends(require_customer)])
async def remove_from_wishlist(
    product_id: str,
    client: MarketplaceClient = Depends(get_marketplace_client),
):
    try:
        return await client.remove_from_wishlist(product_id)
    except BackendError as exc:
        raise backend_http_error(exc)
