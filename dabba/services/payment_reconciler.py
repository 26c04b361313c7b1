import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, select

from dabba.config import settings
from dabba.constants import order_status
from dabba.models.cook_payment import CookPayment
from dabba.models.order import Order
from dabba.services import order_event_service as events
from dabba.services.errors import (
    OrderStateConflict,
    PaymentCancelled,
    PaymentFailed,
    SignatureVerificationFailed,
)
from dabba.services.payment_gateway import RazorpayGateway
from dabba.utils.money import to_paise

logger = logging.getLogger(__name__)


class OutcomeKind(str, Enum):
    SUCCESS = "success"
    CANCELLED = "cancelled"
    FAILED = "failed"


@dataclass(frozen=True)
class PaymentOutcome:
    """
    How the customer's trip through the gateway widget ended.

    A success only carries the gateway's claims; nothing is trusted until
    the signature has been checked.
    """

    kind: OutcomeKind
    payment_id: Optional[str] = None
    gateway_order_id: Optional[str] = None
    signature: Optional[str] = None
    reason: Optional[str] = None

    @classmethod
    def success(cls, payment_id: str, gateway_order_id: str, signature: str) -> "PaymentOutcome":
        return cls(OutcomeKind.SUCCESS, payment_id, gateway_order_id, signature)

    @classmethod
    def cancelled(cls, reason: Optional[str] = None) -> "PaymentOutcome":
        return cls(OutcomeKind.CANCELLED, reason=reason or "Payment cancelled by user")

    @classmethod
    def failed(cls, reason: Optional[str] = None) -> "PaymentOutcome":
        return cls(OutcomeKind.FAILED, reason=reason or "Payment failed at gateway")


def format_address(address: Dict[str, Any]) -> str:
    address = address or {}
    return (
        f"{address.get('street', '')}, {address.get('city', '')}, "
        f"{address.get('state', '')} {address.get('pincode', '')}"
    ).strip()


def gateway_receipt(order: Order) -> str:
    # Razorpay caps receipts at 40 characters
    return f"order_{order.id.hex}"[:40]


class PaymentReconciler:
    """
    Settles payment for an order and pushes the result onto the order and
    the cook's payable.

        pending --cash--> pending (payable created on delivery)
        pending --online, verified--> paid + payable
        pending --online, cancelled/failed/bad signature--> payment_failed
    """

    def __init__(self, session: Session, gateway: RazorpayGateway, currency: str = "INR"):
        self.session = session
        self.gateway = gateway
        self.currency = currency

    # ------------------------------------------------------------------
    # start
    # ------------------------------------------------------------------

    def start_payment(self, order: Order) -> Optional[Dict[str, Any]]:
        """
        Cash orders need nothing more. Online orders get a gateway session
        sized in paise; its id is kept on the order for verification.
        """
        if order.payment_method == order_status.CASH:
            logger.info(f"Order {order.id} placed with cash on delivery")
            return None

        try:
            gateway_order = self.gateway.create_order(
                amount=to_paise(order.total),
                currency=self.currency,
                receipt=gateway_receipt(order),
                notes={
                    "order_id": str(order.id),
                    "address": format_address(order.delivery_address),
                },
            )
            order.gateway_order_id = gateway_order["id"]
            order.updated_at = datetime.utcnow()
            self.session.add(order)
            events.log_order_event(
                self.session,
                order.id,
                events.PAYMENT_STARTED,
                "Payment started",
                meta={"gateway_order_id": gateway_order["id"]},
            )
            self.session.commit()
        except Exception as exc:
            self.session.rollback()
            logger.exception(f"Could not open a payment session for order {order.id}")
            self._mark_failed(order, events.PAYMENT_FAILED, f"Gateway session error: {exc}")
            raise PaymentFailed("Payment failed: could not reach the payment gateway") from exc

        return {
            "id": gateway_order["id"],
            "key": self.gateway.key_id,
            "amount": gateway_order.get("amount", to_paise(order.total)),
            "currency": gateway_order.get("currency", self.currency),
            "receipt": gateway_order.get("receipt"),
        }

    # ------------------------------------------------------------------
    # settle
    # ------------------------------------------------------------------

    def settle(self, order: Order, outcome: PaymentOutcome) -> Order:
        """Apply the widget's outcome to an online order. Safe to repeat."""
        if order.payment_method != order_status.ONLINE:
            raise OrderStateConflict("Only online orders are settled through the gateway")

        if outcome.kind is OutcomeKind.SUCCESS:
            return self._settle_success(order, outcome)

        if order.status == order_status.PAID:
            raise OrderStateConflict("Order is already paid")

        if outcome.kind is OutcomeKind.CANCELLED:
            if order.status == order_status.PENDING:
                self._mark_failed(order, events.PAYMENT_CANCELLED, outcome.reason)
            raise PaymentCancelled(outcome.reason)

        if order.status == order_status.PENDING:
            self._mark_failed(order, events.PAYMENT_FAILED, outcome.reason)
        raise PaymentFailed(f"Payment failed: {outcome.reason}")

    def _settle_success(self, order: Order, outcome: PaymentOutcome) -> Order:
        verified = (
            bool(order.gateway_order_id)
            and outcome.gateway_order_id == order.gateway_order_id
            and self.gateway.verify_signature(
                outcome.gateway_order_id, outcome.payment_id or "", outcome.signature or ""
            )
        )

        if order.status == order_status.PAID:
            # retried callback: same payment again is a no-op, anything else is rejected
            if verified and outcome.payment_id == order.payment_id:
                logger.info(f"Order {order.id} already paid with {order.payment_id}, nothing to do")
                return order
            raise OrderStateConflict("Order is already paid")

        if order.status != order_status.PENDING:
            if verified:
                logger.error(
                    f"Verified payment {outcome.payment_id} arrived for order {order.id} "
                    f"in status {order.status}; needs manual reconciliation"
                )
            raise OrderStateConflict(f"Cannot accept payment for an order in status {order.status}")

        if not verified:
            self._mark_failed(order, events.PAYMENT_FAILED, "Invalid payment signature")
            raise SignatureVerificationFailed()

        try:
            self._mark_paid(order, outcome.payment_id)
        except IntegrityError:
            # a concurrent retry recorded the payable first
            self.session.rollback()
            self.session.refresh(order)
            if order.status == order_status.PAID:
                return order
            logger.exception(f"Payable conflict for order {order.id} without a paid order")
            self._mark_failed(order, events.PAYMENT_FAILED, "Could not record payment")
            raise PaymentFailed("Payment failed: could not record payment")
        except Exception as exc:
            self.session.rollback()
            logger.exception(
                f"Payment {outcome.payment_id} verified but order {order.id} could not be "
                f"marked paid; refund or reconcile manually"
            )
            self._mark_failed(order, events.PAYMENT_FAILED, f"Could not record payment: {exc}")
            raise PaymentFailed("Payment failed: could not record payment") from exc

        return order

    # ------------------------------------------------------------------
    # state changes
    # ------------------------------------------------------------------

    def _mark_paid(self, order: Order, payment_id: str) -> None:
        order.status = order_status.PAID
        order.payment_status = order_status.PAYMENT_PAID
        order.payment_id = payment_id
        order.updated_at = datetime.utcnow()
        self.session.add(order)
        events.log_order_event(
            self.session,
            order.id,
            events.PAYMENT_SUCCESS,
            "Payment received",
            meta={"payment_id": payment_id, "gateway_order_id": order.gateway_order_id},
        )
        create_payable(self.session, order)
        self.session.commit()
        self.session.refresh(order)
        logger.info(f"Order {order.id} paid with {payment_id}")

    def _mark_failed(self, order: Order, event_type: str, reason: Optional[str]) -> None:
        """Terminal failure. The order row stays as an audit trail."""
        try:
            self.session.refresh(order)
            if not order_status.can_transition(order.status, order_status.PAYMENT_FAILED):
                return
            order.status = order_status.PAYMENT_FAILED
            order.payment_status = order_status.PAYMENT_FAILED_STATUS
            order.updated_at = datetime.utcnow()
            self.session.add(order)
            events.log_order_event(
                self.session, order.id, event_type, "Payment failed", meta={"reason": reason}
            )
            self.session.commit()
        except SQLAlchemyError:
            self.session.rollback()
            logger.exception(f"Could not mark order {order.id} as payment_failed")
            raise
        logger.warning(f"Order {order.id} marked payment_failed: {reason}")


def create_payable(session: Session, order: Order) -> Optional[CookPayment]:
    """
    Record what the cook is owed for `order`, at most once.
    The caller commits.
    """
    existing = session.exec(
        select(CookPayment).where(CookPayment.order_id == order.id)
    ).first()
    if existing:
        return None

    payable = CookPayment(
        cook_id=order.cook_id,
        order_id=order.id,
        amount=order.total,
        status=order_status.PAYABLE_PENDING,
    )
    session.add(payable)
    return payable


def get_reconciler(session: Session, gateway: RazorpayGateway) -> PaymentReconciler:
    return PaymentReconciler(session, gateway, currency=settings.currency)
