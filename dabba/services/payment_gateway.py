import logging
from functools import lru_cache
from typing import Any, Dict, Optional

import razorpay
from razorpay.errors import SignatureVerificationError

from dabba.config import settings

logger = logging.getLogger(__name__)


class RazorpayGateway:
    """
    Thin wrapper around the Razorpay SDK client.

    Built explicitly and handed to whoever needs it, so tests can swap the
    client's order API for a fake and still use the SDK's real signature check.
    """

    def __init__(
        self,
        key_id: str,
        key_secret: str,
        *,
        timeout: float = 10.0,
        client: Optional[razorpay.Client] = None,
    ):
        self.key_id = key_id
        self.timeout = timeout
        self.client = client or razorpay.Client(auth=(key_id, key_secret))

    def create_order(
        self,
        amount: int,
        currency: str,
        receipt: str,
        notes: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """Create a gateway order (the payment session). `amount` is in paise."""
        gateway_order = self.client.order.create(
            data={
                "amount": amount,
                "currency": currency,
                "receipt": receipt,
                "notes": notes or {},
            },
            timeout=self.timeout,
        )
        logger.info(f"Razorpay order {gateway_order.get('id')} created for receipt {receipt}")
        return gateway_order

    def verify_signature(self, gateway_order_id: str, payment_id: str, signature: str) -> bool:
        """
        HMAC-SHA256 over "<gateway_order_id>|<payment_id>" with the key secret,
        compared in constant time by the SDK.
        """
        try:
            self.client.utility.verify_payment_signature({
                "razorpay_order_id": gateway_order_id,
                "razorpay_payment_id": payment_id,
                "razorpay_signature": signature,
            })
        except SignatureVerificationError:
            logger.warning(f"Signature mismatch for payment {payment_id} on {gateway_order_id}")
            return False
        return True


@lru_cache(maxsize=1)
def get_gateway() -> RazorpayGateway:
    if not settings.razorpay_key_secret:
        logger.warning("RAZORPAY_KEY_SECRET is empty; online payments cannot be verified safely")
    return RazorpayGateway(
        settings.razorpay_key_id,
        settings.razorpay_key_secret,
        timeout=settings.razorpay_timeout_seconds,
    )
