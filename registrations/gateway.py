"""
Razorpay payment gateway: order creation and callback signature verification.

Flow:
1. Intake creates an order -> the client opens Razorpay checkout with its id
2. Razorpay returns razorpay_order_id, razorpay_payment_id, razorpay_signature
3. The fulfillment flow checks the signature before touching any state
"""
import hmac
import hashlib
import logging
from collections import namedtuple

from .exceptions import PaymentGatewayError

logger = logging.getLogger(__name__)

PaymentOrder = namedtuple('PaymentOrder', ['id', 'amount', 'currency'])


def compute_signature(secret, order_id, payment_id):
    """
    Signature Razorpay sends with a completed checkout:
    hex(HMAC_SHA256(key_secret, "<order_id>|<payment_id>")).
    """
    message = f"{order_id}|{payment_id}"
    return hmac.new(
        secret.encode('utf-8'),
        message.encode('utf-8'),
        hashlib.sha256
    ).hexdigest()


def verify_payment_signature(secret, order_id, payment_id, signature):
    """
    Return True when signature authenticates order_id and payment_id.
    Pure function; an empty secret or missing value never verifies.
    """
    if not (secret and order_id and payment_id and signature):
        return False
    expected = compute_signature(secret, order_id, payment_id)
    # bytes, so a non-ASCII signature is a mismatch rather than a TypeError
    return hmac.compare_digest(expected.encode('utf-8'), str(signature).encode('utf-8'))


class PaymentGateway:
    """
    Thin wrapper around the Razorpay SDK.

    The SDK client is created lazily from the configured credentials; a
    preconfigured client can be passed in instead.
    """

    def __init__(self, key_id, key_secret, currency='INR', client=None):
        self.key_id = key_id
        self._key_secret = key_secret
        self.currency = currency
        self._client = client

    def _get_client(self):
        if self._client is None:
            if not (self.key_id and self._key_secret):
                raise PaymentGatewayError("Razorpay credentials are not configured")
            import razorpay
            self._client = razorpay.Client(auth=(self.key_id, self._key_secret))
        return self._client

    def create_order(self, amount, receipt):
        """
        Create an auto-captured order for amount (paise).

        Returns:
            PaymentOrder with the gateway's order id, amount and currency
        """
        options = {
            'amount': int(amount),
            'currency': self.currency,
            'receipt': receipt,
            'payment_capture': 1,  # Auto capture payment
        }
        try:
            data = self._get_client().order.create(data=options)
        except PaymentGatewayError:
            raise
        except Exception as e:
            logger.error(f"[Payment] Razorpay order creation failed for receipt {receipt}: {e}")
            raise PaymentGatewayError(f"Order creation failed: {e}") from e

        order = PaymentOrder(
            id=data['id'],
            amount=data.get('amount', options['amount']),
            currency=data.get('currency', self.currency),
        )
        logger.info(f"[Payment] Created order {order.id} for {order.amount} {order.currency}")
        return order

    def verify(self, order_id, payment_id, signature):
        return verify_payment_signature(self._key_secret, order_id, payment_id, signature)
