"""
Intake: turns a submitted registration form into a stored Registration and
a pending Razorpay order.
"""
import logging
import os
import tempfile
from collections import namedtuple
from pathlib import Path

from .cards import delete_local_files, save_photo_copy
from .models import PaymentActivity, Registration
from .utils import calculate_amount, generate_reg_no

logger = logging.getLogger(__name__)

# Upload field -> Registration URL field (same names)
DOCUMENT_FIELDS = [
    'photo',
    'certificate',
    'resident_certificate',
    'aadhaar_front_photo',
    'aadhaar_back_photo',
]

IntakeResult = namedtuple('IntakeResult', ['registration', 'order'])


class RegistrationIntake:
    """
    Uploads the applicant's documents, stores the registration and opens a
    payment order for it.

    Nothing is rolled back if a later step fails: documents already in the
    content store and a saved registration stay where they are. Only the
    local photo copy kept for the card is removed.
    """

    def __init__(self, store, gateway, card_work_dir, upload_folder='uploads', temp_dir=None):
        self.store = store
        self.gateway = gateway
        self.card_work_dir = Path(card_work_dir)
        self.upload_folder = upload_folder
        self.temp_dir = temp_dir

    def _stage(self, upload):
        """Write an uploaded file to a local temp file and return its path."""
        suffix = Path(upload.name or '').suffix.lower()
        fd, path = tempfile.mkstemp(suffix=suffix, dir=self.temp_dir)
        with os.fdopen(fd, 'wb') as f:
            for chunk in upload.chunks():
                f.write(chunk)
        return path

    def upload_document(self, reg_no, field, upload):
        """
        Upload one document and return its public URL.
        The local temp copy is discarded whether or not the upload succeeds.
        """
        local_path = self._stage(upload)
        try:
            url = self.store.upload(local_path, self.upload_folder)
            if field == 'photo':
                save_photo_copy(self.card_work_dir, reg_no, local_path)
            return url
        finally:
            self.store.delete(local_path)

    def _discard_card_files(self, reg_no):
        try:
            delete_local_files(self.card_work_dir, reg_no)
        except OSError as e:
            logger.error(f"Could not remove card files for {reg_no}: {e}")

    def register(self, fields, files):
        """
        Run the intake flow.

        Args:
            fields: cleaned applicant fields (athlete_name, email, dob, ...)
            files: mapping of document field name -> uploaded file, any subset

        Returns:
            IntakeResult(registration, order)

        A registration that ends up without an order can never be paid, so
        the photo kept for its card is removed on any failure.
        """
        reg_no = generate_reg_no()
        try:
            return self._register(reg_no, fields, files)
        except Exception:
            self._discard_card_files(reg_no)
            raise

    def _register(self, reg_no, fields, files):
        document_urls = {}
        for field in DOCUMENT_FIELDS:
            upload = files.get(field)
            if upload:
                document_urls[field] = self.upload_document(reg_no, field, upload)

        amount = calculate_amount(fields.get('email'))
        registration = Registration.objects.create(
            reg_no=reg_no,
            amount=amount,
            currency=self.gateway.currency,
            **fields,
            **document_urls,
        )
        logger.info(f"Registration {registration.reg_no} created for {registration.email} "
                    f"with {len(document_urls)} document(s)")

        order = self.gateway.create_order(amount, receipt=f"rcpt_{registration.id.hex}")

        registration.razorpay_order_id = order.id
        registration.save(update_fields=['razorpay_order_id', 'updated_at'])
        PaymentActivity.objects.create(
            registration=registration,
            reference=order.id,
            status='initiated',
            amount=order.amount,
            currency=order.currency,
            message='Order created',
        )
        return IntakeResult(registration, order)
