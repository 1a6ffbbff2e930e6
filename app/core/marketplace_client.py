"""
Async client for the Ayurvedic marketplace REST API.

Responsibilities:
  - Attach the caller's bearer token to every request.
  - Unwrap the `{"success": true, "data": ...}` envelope some endpoints use.
  - Turn non-2xx answers (and 2xx bodies carrying `"success": false`)
    into BackendError and transport failures into
    BackendUnavailable, so callers only deal with one exception family.

Endpoints used:

    GET    /api/products
    GET    /api/products/{id}
    GET    /api/wishlist
    POST   /api/wishlist/{id}
    DELETE /api/wishlist/{id}
    POST   /api/cart
    POST   /api/orders
"""

import logging
from typing import Any

import httpx

from app.core.config import get_settings

logger = logging.getLogger(__name__)

settings = get_settings()


class BackendError(Exception):
    """
    The marketplace answered with a non-2xx status.
    """

    def __init__(self, status_code: int | None, message: str):
        super().__init__(message)
        self.status_code = status_code
        self.message = message

    @property
    def is_auth_error(self) -> bool:
        return self.status_code == 401


class BackendUnavailable(BackendError):
    """
    No response at all (connection refused, timeout, DNS, ...).
    """

    def __init__(self, message: str):
        super().__init__(None, message)


def unwrap(body: Any) -> Any:
    """
    Return `body["data"]` when the marketplace wrapped its answer.
    """
    if isinstance(body, dict) and "data" in body and body["data"] is not None:
        return body["data"]
    return body


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        message = body.get("message") or body.get("detail")
        if message:
            return str(message)
    return response.reason_phrase or f"HTTP {response.status_code}"


class MarketplaceClient:
    """
    Thin async wrapper over httpx.AsyncClient.

    Usage:

        async with MarketplaceClient(token=principal.token) as client:
            product = await client.get_product(product_id)

    `transport` is only meant for tests (httpx.MockTransport).
    """

    def __init__(
        self,
        token: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        headers = {"Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._client = httpx.AsyncClient(
            base_url=base_url or settings.BACKEND_API_URL,
            headers=headers,
            timeout=timeout or settings.BACKEND_TIMEOUT_SECONDS,
            transport=transport,
        )

    async def __aenter__(self) -> "MarketplaceClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    # ---- transport ----

    async def _request(self, method: str, path: str, **kwargs) -> Any:
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            logger.warning("Marketplace %s %s failed: %s", method, path, exc)
            raise BackendUnavailable(str(exc) or exc.__class__.__name__) from exc

        if response.is_error:
            message = _error_message(response)
            logger.warning(
                "Marketplace %s %s -> %s: %s",
                method,
                path,
                response.status_code,
                message,
            )
            raise BackendError(response.status_code, message)

        if not response.content:
            return None
        try:
            body = response.json()
        except ValueError as exc:
            raise BackendError(response.status_code, "Invalid JSON from marketplace") from exc

        # 2xx with {"success": false, "message": ...} is still a rejection.
        if isinstance(body, dict) and body.get("success") is False:
            message = str(body.get("message") or body.get("detail") or "Request failed")
            logger.warning(
                "Marketplace %s %s -> %s rejected: %s",
                method,
                path,
                response.status_code,
                message,
            )
            raise BackendError(response.status_code, message)

        return body

    # ---- catalog ----

    async def list_products(self, params: dict[str, Any] | None = None) -> Any:
        return await self._request("GET", "/api/products", params=params)

    async def get_product(self, product_id: str) -> dict[str, Any]:
        body = await self._request("GET", f"/api/products/{product_id}")
        return unwrap(body)

    # ---- wishlist ----

    async def get_wishlist(self) -> Any:
        return await self._request("GET", "/api/wishlist")

    async def add_to_wishlist(self, product_id: str) -> Any:
        return await self._request("POST", f"/api/wishlist/{product_id}")

    async def remove_from_wishlist(self, product_id: str) -> Any:
        return await self._request("DELETE", f"/api/wishlist/{product_id}")

    # ---- cart / orders ----

    async def sync_cart(self, items: list[dict[str, Any]]) -> Any:
        return await self._request("POST", "/api/cart", json={"items": items})

    async def create_order(self, payload: dict[str, Any]) -> dict[str, Any]:
        body = await self._request("POST", "/api/orders", json=payload)
        return unwrap(body) or {}
