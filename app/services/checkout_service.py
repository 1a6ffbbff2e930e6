import logging
import random
import re
from typing import Protocol

from pydantic import ValidationError

from app.core.auth import Principal
from app.core.marketplace_client import BackendError
from app.schemas.cart import CartSnapshot
from app.schemas.checkout import (
    CheckoutState,
    CheckoutView,
    OrderItemPayload,
    OrderPayload,
    ShippingForm,
)
from app.services.cart_store import CartStore

logger = logging.getLogger(__name__)

EMAIL_RE = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")
PHONE_RE = re.compile(r"[0-9]{10}")
ZIP_RE = re.compile(r"[0-9]{5}(-[0-9]{4})?")

LOGIN_REQUIRED_MESSAGE = (
    "You must be logged in to place an order. Please login and try again."
)
SESSION_EXPIRED_MESSAGE = (
    "Your session has expired. Please login again to place your order."
)

# Fields with a plain "required" rule, in form order.
REQUIRED_FIELDS: dict[str, str] = {
    "full_name": "Full name is required",
    "address": "Address is required",
    "city": "City is required",
    "state": "State is required",
}


class OrderSubmitter(Protocol):
    async def create_order(self, payload: dict) -> dict: ...


def validate_shipping_form(form: ShippingForm) -> dict[str, str]:
    """
    Return field -> error message for every invalid field.

    An empty dict means the form can be submitted.
    """
    errors: dict[str, str] = {}

    if not form.full_name.strip():
        errors["full_name"] = REQUIRED_FIELDS["full_name"]

    if not form.email.strip():
        errors["email"] = "Email is required"
    elif not EMAIL_RE.fullmatch(form.email):
        errors["email"] = "Please enter a valid email address"

    if not form.phone.strip():
        errors["phone"] = "Phone number is required"
    elif not PHONE_RE.fullmatch(form.phone):
        errors["phone"] = "Please enter a valid 10-digit phone number"

    for field in ("address", "city", "state"):
        if not getattr(form, field).strip():
            errors[field] = REQUIRED_FIELDS[field]

    if not form.zip_code.strip():
        errors["zip_code"] = "Zip code is required"
    elif not ZIP_RE.fullmatch(form.zip_code):
        errors["zip_code"] = "Please enter a valid zip code (e.g., 12345 or 12345-6789)"

    return errors


def build_order_payload(
    snapshot: CartSnapshot,
    form: ShippingForm,
    customer_id: str,
) -> OrderPayload:
    """
    Compose the order creation request.

    Prices and total come from the snapshot; nothing is re-derived here.
    """
    return OrderPayload(
        customer_id=customer_id,
        items=[
            OrderItemPayload(
                product_id=item.product_id,
                quantity=item.quantity,
                price=item.price,
            )
            for item in snapshot.items
        ],
        total_amount=snapshot.total_price,
        delivery_address=form.delivery_address(),
        payment_method=form.payment_method,
    )


def order_number_for(created) -> str:
    order_id = None
    if isinstance(created, dict):
        order_id = created.get("_id") or created.get("id")
    if not order_id:
        order_id = random.randint(100000, 999999)
    return f"ORD-{order_id}"


class CheckoutOrchestrator:
    """
    Checkout flow for one cart snapshot.

    States:
      editing    -> submitting   (submit with a valid form)
      submitting -> complete     (order created; cart cleared)
      submitting -> editing      (any failure; submit_error set, cart kept)

    An empty snapshot never shows the form and never submits.
    """

    def __init__(
        self,
        snapshot: CartSnapshot,
        cart_store: CartStore,
        orders: OrderSubmitter,
        principal: Principal | None = None,
        form: ShippingForm | None = None,
    ):
        self.snapshot = snapshot
        self.cart_store = cart_store
        self.orders = orders
        self.principal = principal
        self.form = form or self._prefilled_form(principal)
        self.state = CheckoutState.EDITING
        self.errors: dict[str, str] = {}
        self.submit_error: str | None = None
        self.order_number: str | None = None

    @staticmethod
    def _prefilled_form(principal: Principal | None) -> ShippingForm:
        if principal is None:
            return ShippingForm()
        return ShippingForm(
            full_name=principal.name or "",
            email=principal.email or "",
        )

    # ---- view ----

    def view(self) -> CheckoutView:
        if self.state == CheckoutState.COMPLETE:
            kind = "complete"
        elif self.snapshot.is_empty:
            kind = "empty"
        else:
            kind = "form"

        return CheckoutView(
            view=kind,
            state=self.state,
            errors=dict(self.errors),
            submit_error=self.submit_error,
            order_number=self.order_number,
            total_price=self.snapshot.total_price,
        )

    # ---- editing ----

    def edit(self, field: str, value: str) -> None:
        """
        Change one form field and clear that field's error only.

        A value the field cannot hold (e.g. an unknown payment method)
        leaves the form unchanged and is reported under errors[field].
        """
        if self.state != CheckoutState.EDITING:
            raise RuntimeError(f"Form is read-only while {self.state.value}")
        if field not in ShippingForm.model_fields:
            raise ValueError(f"Unknown checkout field: {field}")

        try:
            form = ShippingForm.model_validate({**self.form.model_dump(), field: value})
        except ValidationError as exc:
            self.errors[field] = exc.errors()[0]["msg"]
            return
        self.form = form
        self.errors.pop(field, None)

    def validate(self) -> bool:
        self.errors = validate_shipping_form(self.form)
        return not self.errors

    # ---- submission ----

    async def submit(self) -> CheckoutView:
        """
        Validate and place the order.

        Failures never raise; they land in errors / submit_error with the
        cart left untouched.
        """
        if self.state != CheckoutState.EDITING:
            logger.info("Ignoring checkout submit while %s", self.state.value)
            return self.view()

        if self.snapshot.is_empty:
            return self.view()

        if not self.validate():
            return self.view()

        self.state = CheckoutState.SUBMITTING
        self.submit_error = None

        if self.principal is None or not self.principal.id:
            self.submit_error = LOGIN_REQUIRED_MESSAGE
            self.state = CheckoutState.EDITING
            return self.view()

        payload = build_order_payload(self.snapshot, self.form, self.principal.id)

        try:
            created = await self.orders.create_order(payload.model_dump(by_alias=True))
        except BackendError as exc:
            if exc.is_auth_error:
                self.submit_error = SESSION_EXPIRED_MESSAGE
            else:
                self.submit_error = f"Failed to process your order: {exc.message or 'Unknown error'}"
            logger.warning("Order submission failed: %s", exc.message)
            self.state = CheckoutState.EDITING
            return self.view()
        except Exception as exc:
            logger.exception("Unexpected error while placing order")
            self.submit_error = f"Failed to process your order: {str(exc) or 'Unknown error'}"
            self.state = CheckoutState.EDITING
            return self.view()

        self.order_number = order_number_for(created)
        self.cart_store.clear()
        self.state = CheckoutState.COMPLETE
        logger.info("Order %s placed for customer %s", self.order_number, self.principal.id)
        return self.view()
