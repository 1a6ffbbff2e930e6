from pydantic import BaseModel, ConfigDict, Field
from sqlmodel import SQLModel


class CartLine(BaseModel):
    """
    One product's presence in the cart.

    Serialized with camelCase keys, the same shape that is persisted:
        {"productId": "...", "quantity": 2}
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    product_id: str = Field(alias="productId", min_length=1)
    quantity: int = Field(ge=1)


class CartItemCreate(BaseModel):
    """
    Payload for adding to cart.
    """

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    product_id: str = Field(alias="productId", min_length=1)
    quantity: int = Field(default=1, gt=0)


class CartItemUpdate(SQLModel):
    """
    Payload for setting the quantity of a cart line.

    A quantity below 1 removes the line.
    """

    quantity: int


class CartCount(SQLModel):
    """
    Badge value: sum of all line quantities.
    """

    count: int


class CartSnapshotItem(BaseModel):
    """
    A cart line enriched with catalog data at the time the cart was priced.
    """

    model_config = ConfigDict(frozen=True)

    product_id: str
    name: str
    price: float
    quantity: int = Field(ge=1)
    image_url: str | None = None
    stock: int | None = None

    @property
    def line_total(self) -> float:
        return self.price * self.quantity


class CartSnapshot(BaseModel):
    """
    Immutable priced copy of the cart, used for checkout.

    total_price is computed once here and trusted through checkout.
    """

    model_config = ConfigDict(frozen=True)

    items: tuple[CartSnapshotItem, ...] = ()
    total_quantity: int = 0
    total_price: float = 0.0

    @classmethod
    def from_items(cls, items: list[CartSnapshotItem]) -> "CartSnapshot":
        return cls(
            items=tuple(items),
            total_quantity=sum(it.quantity for it in items),
            total_price=sum(it.line_total for it in items),
        )

    @property
    def is_empty(self) -> bool:
        return not self.items
