from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from app.schemas.cart import CartSnapshot

PaymentMethod = Literal["cod", "card"]


class CheckoutState(str, Enum):
    EDITING = "editing"
    SUBMITTING = "submitting"
    COMPLETE = "complete"


class ShippingForm(BaseModel):
    """
    Shipping and payment details typed into the checkout form.

    Values are kept as typed; validation is field-scoped and lives in
    validate_shipping_form(), so an invalid form is still a valid object.
    Accepts both snake_case and the camelCase names the storefront posts.
    """

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    full_name: str = Field(default="", alias="fullName")
    email: str = ""
    phone: str = ""
    address: str = ""
    city: str = ""
    state: str = ""
    zip_code: str = Field(default="", alias="zipCode")
    payment_method: PaymentMethod = Field(default="cod", alias="paymentMethod")

    def delivery_address(self) -> str:
        return f"{self.address}, {self.city}, {self.state} {self.zip_code}"


class OrderItemPayload(BaseModel):
    """
    One line of the order creation request sent to the marketplace.
    """

    model_config = ConfigDict(populate_by_name=True)

    product_id: str = Field(alias="productId")
    quantity: int = Field(ge=1)
    price: float


class OrderPayload(BaseModel):
    """
    Body of POST /api/orders.

    The marketplace derives the customer from the token as well; the id is
    sent for parity with the storefront.
    """

    model_config = ConfigDict(populate_by_name=True)

    customer_id: str = Field(alias="customerId")
    items: list[OrderItemPayload]
    total_amount: float = Field(alias="totalAmount")
    delivery_address: str = Field(alias="deliveryAddress")
    payment_method: PaymentMethod = Field(alias="paymentMethod")


class CheckoutRequest(BaseModel):
    """
    Checkout submission.

    `snapshot` is the priced cart the customer saw when entering checkout
    (GET /cart/summary). When omitted the cart is priced now.
    """

    model_config = ConfigDict(extra="forbid")

    form: ShippingForm
    snapshot: CartSnapshot | None = None


class CheckoutView(BaseModel):
    """
    What the checkout screen shows.

    view:
      - "empty"    : nothing to check out, no form
      - "form"     : editable form (possibly with errors)
      - "complete" : order placed, order_number set
    """

    view: Literal["empty", "form", "complete"]
    state: CheckoutState
    errors: dict[str, str] = {}
    submit_error: str | None = None
    order_number: str | None = None
    total_price: float = 0.0
