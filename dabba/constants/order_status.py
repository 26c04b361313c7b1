PENDING = "pending"
PAID = "paid"
PAYMENT_FAILED = "payment_failed"
DELIVERED = "delivered"
CANCELLED = "cancelled"

# payment_status values
PAYMENT_PENDING = "pending"
PAYMENT_PAID = "paid"
PAYMENT_FAILED_STATUS = "failed"

# payment_method values
CASH = "cash"
ONLINE = "online"
PAYMENT_METHODS = (CASH, ONLINE)

# cook_payments.status values
PAYABLE_PENDING = "pending"
PAYABLE_COMPLETED = "completed"

# Forward-only. A failed order is never resurrected.
ALLOWED_TRANSITIONS = {
    PENDING: [PAID, PAYMENT_FAILED, DELIVERED, CANCELLED],
    PAID: [DELIVERED, CANCELLED],
    DELIVERED: [],
    PAYMENT_FAILED: [],
    CANCELLED: [],
}


def can_transition(current: str, new: str) -> bool:
    return new in ALLOWED_TRANSITIONS.get(current, [])
