from typing import List, Optional


class CheckoutError(Exception):
    """Base for everything the checkout flow can fail with."""

    status_code = 400
    code = "checkout_error"
    default_message = "Checkout failed"
    redirect: Optional[str] = None

    def __init__(self, message: Optional[str] = None, *, redirect: Optional[str] = None):
        self.message = message or self.default_message
        if redirect is not None:
            self.redirect = redirect
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"detail": self.message, "code": self.code, "redirect": self.redirect}


# Pre-condition failures: nothing has been written.

class NotAuthenticated(CheckoutError):
    status_code = 401
    code = "not_authenticated"
    default_message = "You need to be logged in to complete your purchase."
    redirect = "/login?redirect=/checkout"


class IncompleteProfile(CheckoutError):
    code = "incomplete_profile"
    default_message = "Please complete your profile before checkout."
    redirect = "/profile"

    def __init__(self, missing: List[str], message: Optional[str] = None):
        self.missing = list(missing)
        super().__init__(message or f"{self.default_message} Missing: {', '.join(self.missing)}")

    def to_dict(self) -> dict:
        return {**super().to_dict(), "missing": self.missing}


class EmptyCart(CheckoutError):
    code = "empty_cart"
    default_message = "Your cart is empty."


class InvalidCatalogReference(CheckoutError):
    code = "invalid_catalog_reference"
    default_message = "Invalid menu items in cart."


class MixedCookCart(CheckoutError):
    code = "mixed_cook_cart"
    default_message = "All items in one order must come from the same cook."


# Write failures.

class OrderCreationFailed(CheckoutError):
    status_code = 500
    code = "order_creation_failed"
    default_message = "Failed to create order."


class OrderLineCreationFailed(CheckoutError):
    status_code = 500
    code = "order_line_creation_failed"
    default_message = "Failed to add items to order."


# Payment failures: the order exists and is kept, marked payment_failed.

class PaymentCancelled(CheckoutError):
    code = "payment_cancelled"
    default_message = "Payment cancelled by user."


class SignatureVerificationFailed(CheckoutError):
    code = "signature_verification_failed"
    default_message = "Payment verification failed: Invalid signature"


class PaymentFailed(CheckoutError):
    status_code = 502
    code = "payment_failed"
    default_message = "Payment failed."


class OrderStateConflict(CheckoutError):
    status_code = 409
    code = "order_state_conflict"
    default_message = "Order is not in a state that allows this action."
