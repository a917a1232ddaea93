"""
Builds the payment gateway, content store, card renderer and the two
orchestrators from Django settings. Each is built once per process and
shared by reference.
"""
from functools import lru_cache

from django.conf import settings

from .cards import IdentityCardRenderer
from .fulfillment import PaymentFulfillment
from .gateway import PaymentGateway
from .intake import RegistrationIntake
from .storage import ContentStore


def build_payment_gateway():
    return PaymentGateway(
        key_id=settings.RAZORPAY_KEY_ID,
        key_secret=settings.RAZORPAY_KEY_SECRET,
        currency=settings.PAYMENT_CURRENCY,
    )


def build_content_store():
    return ContentStore(
        bucket=settings.CONTENT_STORE_BUCKET,
        region=settings.CONTENT_STORE_REGION,
        endpoint_url=settings.CONTENT_STORE_ENDPOINT_URL,
        access_key_id=settings.AWS_ACCESS_KEY_ID,
        secret_access_key=settings.AWS_SECRET_ACCESS_KEY,
        public_base_url=settings.CONTENT_STORE_PUBLIC_URL,
        public_read=settings.CONTENT_STORE_PUBLIC_READ,
    )


def build_card_renderer():
    return IdentityCardRenderer(
        work_dir=settings.CARD_WORK_DIR,
        title=settings.CARD_TITLE,
        photo_timeout=settings.CARD_PHOTO_TIMEOUT,
    )


@lru_cache(maxsize=None)
def get_payment_gateway():
    return build_payment_gateway()


@lru_cache(maxsize=None)
def get_content_store():
    return build_content_store()


@lru_cache(maxsize=None)
def get_intake():
    return RegistrationIntake(
        store=get_content_store(),
        gateway=get_payment_gateway(),
        card_work_dir=settings.CARD_WORK_DIR,
        upload_folder=settings.DOCUMENT_UPLOAD_FOLDER,
        temp_dir=settings.FILE_UPLOAD_TEMP_DIR,
    )


@lru_cache(maxsize=None)
def get_fulfillment():
    return PaymentFulfillment(
        gateway=get_payment_gateway(),
        store=get_content_store(),
        renderer=build_card_renderer(),
        card_folder=settings.ID_CARD_UPLOAD_FOLDER,
        card_type=settings.CARD_TYPE_CODE,
        claim_timeout=settings.CARD_DELIVERY_CLAIM_TIMEOUT,
    )


def reset_services():
    """Drop cached instances so the next call rebuilds them from settings."""
    for factory in (get_payment_gateway, get_content_store, get_intake, get_fulfillment):
        factory.cache_clear()
