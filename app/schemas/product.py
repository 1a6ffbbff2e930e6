from pydantic import BaseModel, ConfigDict, Field


class ProductRead(BaseModel):
    """
    Catalog product as returned by the marketplace API.

    Only the fields the storefront needs are typed; anything else the
    marketplace sends is kept as extra data.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: str = Field(alias="_id")
    name: str
    price: float = Field(ge=0)
    stock: int = 0
    image_url: str | None = Field(default=None, alias="imageUrl")
    description: str | None = None
    category_name: str | None = Field(default=None, alias="categoryName")
