"""
Shared fixtures.

- Cart storage runs on in-memory SQLite (or MemoryStorage for unit tests).
- The marketplace REST API is replaced by FakeMarketplace behind
  httpx.MockTransport, so no network is used.
"""
import json
import os
from datetime import datetime, timedelta, timezone

# Must be set before app modules read the cached settings.
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET", "test-secret")

import httpx
import pytest
from fastapi import Depends
from fastapi.testclient import TestClient
from jose import jwt
from sqlmodel import SQLModel

from app.core.auth import Principal, get_current_principal
from app.core.config import get_settings
from app.core.marketplace_client import MarketplaceClient
from app.database import build_engine, get_engine
from app.dependencies import get_marketplace_client
from app.main import app
from app.models import storage as _storage_models  # noqa: F401
from app.services.cart_notifier import CartNotifier
from app.services.cart_store import CartStore
from app.services.storage import MemoryStorage

settings = get_settings()

MARKETPLACE_URL = "http://marketplace.test"


def make_token(user_id: str = "cust-1", role: str = "customer", **claims) -> str:
    payload = {
        "id": user_id,
        "role": role,
        "exp": datetime.now(timezone.utc) + timedelta(hours=1),
        **claims,
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALG)


def auth_headers(user_id: str = "cust-1", role: str = "customer", **claims) -> dict:
    return {"Authorization": f"Bearer {make_token(user_id, role, **claims)}"}


class FakeMarketplace:
    """
    In-memory stand-in for the marketplace REST API.
    """

    def __init__(self):
        self.products: dict[str, dict] = {}
        self.wishlist: list[str] = []
        self.order_status = 201
        self.order_body: dict = {"success": True, "data": {"_id": "665f1c2e"}}
        self.order_error: Exception | None = None
        self.requests: list[httpx.Request] = []

    def add_product(self, product_id, name, price, stock=10, image_url="herbal.jpg"):
        self.products[product_id] = {
            "_id": product_id,
            "name": name,
            "price": price,
            "stock": stock,
            "imageUrl": image_url,
            "categoryName": "Herbal",
        }

    def posted_orders(self) -> list[dict]:
        return [
            json.loads(r.content)
            for r in self.requests
            if r.method == "POST" and r.url.path == "/api/orders"
        ]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        method = request.method

        if method == "GET" and path == "/api/products":
            return httpx.Response(200, json=list(self.products.values()))

        if method == "GET" and path.startswith("/api/products/"):
            product = self.products.get(path.rsplit("/", 1)[-1])
            if product is None:
                return httpx.Response(404, json={"message": "Product not found"})
            return httpx.Response(200, json={"success": True, "data": product})

        if path.startswith("/api/wishlist"):
            if "authorization" not in request.headers:
                return httpx.Response(401, json={"message": "Authentication required"})
            if method == "POST":
                self.wishlist.append(path.rsplit("/", 1)[-1])
            elif method == "DELETE":
                product_id = path.rsplit("/", 1)[-1]
                self.wishlist = [p for p in self.wishlist if p != product_id]
            return httpx.Response(200, json={"success": True, "data": self.wishlist})

        if method == "POST" and path == "/api/cart":
            return httpx.Response(200, json=json.loads(request.content))

        if method == "POST" and path == "/api/orders":
            if self.order_error is not None:
                raise self.order_error
            return httpx.Response(self.order_status, json=self.order_body)

        return httpx.Response(404, json={"message": "Not found"})

    def client(self, token: str | None = None) -> MarketplaceClient:
        return MarketplaceClient(
            token=token,
            base_url=MARKETPLACE_URL,
            transport=httpx.MockTransport(self.handler),
        )


@pytest.fixture
def engine():
    engine = build_engine("sqlite://")
    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def storage():
    return MemoryStorage(area="cust-1")


@pytest.fixture
def notifier():
    return CartNotifier()


@pytest.fixture
def store(storage, notifier):
    return CartStore(storage, notifier)


@pytest.fixture
def marketplace():
    market = FakeMarketplace()
    market.add_product("A", "Ashwagandha Capsules", 250.0, stock=5)
    market.add_product("B", "Triphala Churna", 120.5, stock=20)
    return market


@pytest.fixture
def customer():
    return Principal(
        id="cust-1",
        role="customer",
        token=make_token(),
        name="Asha Verma",
        email="asha@example.com",
    )


@pytest.fixture
def test_client(engine, marketplace):
    """
    TestClient with in-memory storage and the fake marketplace wired in.
    """

    async def override_marketplace_client(
        principal: Principal | None = Depends(get_current_principal),
    ):
        async with marketplace.client(principal.token if principal else None) as client:
            yield client

    app.dependency_overrides[get_engine] = lambda: engine
    app.dependency_overrides[get_marketplace_client] = override_marketplace_client

    client = TestClient(app)
    yield client

    app.dependency_overrides.clear()


@pytest.fixture
def auth():
    """Build Authorization headers: auth(user_id=..., role=...)."""
    return auth_headers
