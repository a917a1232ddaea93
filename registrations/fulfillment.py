"""
Fulfillment: everything that happens after Razorpay reports a completed
payment.

Steps, in order (none runs after a failed one):
1. verify         - signature check, nothing is touched on mismatch
2. mark_paid      - registration.payment = True      } one transaction,
3. enroll         - next enrollment number + record   } registration row locked
   claim          - mark the enrollment as being delivered }
4. render_card    - PDF written to the card work dir
5. publish_card   - PDF uploaded to the content store
6. notify         - PDF emailed to the athlete
7. cleanup        - local files for the reg_no removed, always, once step 4 starts

The order id is the idempotency key: a repeated callback for a registration
whose card was already delivered returns the stored result and does nothing.
While one delivery holds the claim, a concurrent callback for the same
registration backs off instead of rendering the same card a second time.
"""
import logging
from collections import namedtuple

from django.core.exceptions import ValidationError
from django.db import transaction
from django.utils import timezone

from .cards import CardDetails
from .emails import send_id_card_email
from .exceptions import FulfillmentStepError
from .models import AthleteEnrollment, PaymentActivity, Registration
from .utils import expiry_date, format_dob, format_enrollment_number, next_enrollment_sequence

logger = logging.getLogger(__name__)

FULFILLED = 'fulfilled'
ALREADY_FULFILLED = 'already_fulfilled'
IN_PROGRESS = 'in_progress'
REJECTED = 'rejected'
NOT_FOUND = 'not_found'

FulfillmentOutcome = namedtuple(
    'FulfillmentOutcome',
    ['status', 'payment_id', 'registration', 'enrollment', 'card_url'],
)


def _outcome(status, payment_id=None, registration=None, enrollment=None, card_url=None):
    return FulfillmentOutcome(status, payment_id, registration, enrollment, card_url)


class PaymentFulfillment:
    """Runs the post-payment pipeline with injected collaborators."""

    def __init__(self, gateway, store, renderer, mailer=send_id_card_email,
                 card_folder='idcards', card_type='A', claim_timeout=600):
        self.gateway = gateway
        self.store = store
        self.renderer = renderer
        self.mailer = mailer
        self.card_folder = card_folder
        self.card_type = card_type
        self.claim_timeout = claim_timeout

    def _run_step(self, step, func, *args, **kwargs):
        try:
            return func(*args, **kwargs)
        except FulfillmentStepError:
            raise
        except Exception as e:
            raise FulfillmentStepError(step, e) from e

    def fulfill(self, order_id, payment_id, signature, registration_id):
        """
        Process one payment callback.

        Returns:
            FulfillmentOutcome; status is one of FULFILLED, ALREADY_FULFILLED,
            IN_PROGRESS, REJECTED or NOT_FOUND

        Raises:
            FulfillmentStepError: a step after verification failed
        """
        if not self.gateway.verify(order_id, payment_id, signature):
            logger.warning(f"[Payment] Invalid signature for order {order_id}")
            return _outcome(REJECTED, payment_id)

        try:
            registration = Registration.objects.get(pk=registration_id)
        except (Registration.DoesNotExist, ValidationError, ValueError):
            logger.warning(f"[Payment] Verified order {order_id} names unknown registration {registration_id}")
            return _outcome(NOT_FOUND, payment_id)

        # A registration without a stored order never had checkout opened for it
        if registration.razorpay_order_id != order_id:
            logger.warning(f"[Payment] Order {order_id} does not belong to registration {registration.reg_no}")
            return _outcome(REJECTED, payment_id, registration)

        registration, enrollment, blocked = self._run_step(
            'enroll', self.mark_paid_and_enroll, registration.pk, order_id, payment_id
        )
        if blocked == ALREADY_FULFILLED:
            logger.info(f"[Payment] Order {order_id} already fulfilled as {enrollment.enrollment_number}")
            return _outcome(ALREADY_FULFILLED, registration.razorpay_payment_id or payment_id,
                            registration, enrollment, enrollment.card_url)
        if blocked == IN_PROGRESS:
            logger.info(f"[Payment] Card for order {order_id} is already being delivered")
            return _outcome(IN_PROGRESS, payment_id, registration, enrollment)

        card_url = self.deliver_card(registration, enrollment)
        return _outcome(FULFILLED, payment_id, registration, enrollment, card_url)

    def mark_paid_and_enroll(self, registration_pk, order_id, payment_id):
        """
        Set the paid flag, create the enrollment and claim card delivery in one
        transaction. An enrollment left behind by an earlier, interrupted run
        is reused.

        Returns:
            (registration, enrollment, blocked): blocked is None when this call
            holds the delivery claim, else ALREADY_FULFILLED or IN_PROGRESS
        """
        with transaction.atomic():
            registration = Registration.objects.select_for_update().get(pk=registration_pk)
            if not registration.payment:
                registration.payment = True
                registration.razorpay_payment_id = payment_id
                registration.save(update_fields=['payment', 'razorpay_payment_id', 'updated_at'])

            enrollment = AthleteEnrollment.objects.filter(registration=registration).first()
            if enrollment is None:
                enrollment = AthleteEnrollment.objects.create(
                    enrollment_number=format_enrollment_number(next_enrollment_sequence()),
                    registration=registration,
                )
                PaymentActivity.objects.create(
                    registration=registration,
                    reference=order_id,
                    payment_id=payment_id,
                    status='success',
                    amount=registration.amount,
                    currency=registration.currency,
                    message=f"Enrolled as {enrollment.enrollment_number}",
                )
                logger.info(f"[Payment] {registration.reg_no} paid, enrolled as {enrollment.enrollment_number}")

            blocked = self._claim_delivery(enrollment)
        return registration, enrollment, blocked

    def _claim_delivery(self, enrollment, resend=False):
        # Caller holds the registration row lock
        if enrollment.is_card_delivered and not resend:
            return ALREADY_FULFILLED
        if enrollment.is_delivery_in_progress(self.claim_timeout):
            return IN_PROGRESS
        enrollment.delivery_claimed_at = timezone.now()
        enrollment.save(update_fields=['delivery_claimed_at'])
        return None

    def _release_claim(self, enrollment):
        enrollment.delivery_claimed_at = None
        AthleteEnrollment.objects.filter(pk=enrollment.pk).update(delivery_claimed_at=None)

    def resend_card(self, registration):
        """
        Deliver the card of an enrolled registration again.

        Returns:
            str: public URL of the new card, or None if another delivery for
            the registration is still running
        """
        with transaction.atomic():
            registration = Registration.objects.select_for_update().get(pk=registration.pk)
            enrollment = AthleteEnrollment.objects.get(registration=registration)
            blocked = self._claim_delivery(enrollment, resend=True)
        if blocked is not None:
            return None
        return self.deliver_card(registration, enrollment)

    def card_details(self, registration, enrollment):
        return CardDetails(
            id=registration.reg_no,
            enrollment_no=enrollment.enrollment_number,
            type=self.card_type,
            name=registration.athlete_name,
            parentage=registration.father_name,
            gender=registration.gender,
            valid=expiry_date(registration.created_at),
            district=registration.district,
            dob=format_dob(registration.dob),
        )

    def _cleanup(self, reg_no):
        try:
            self.renderer.delete_files(reg_no)
        except OSError as e:
            logger.error(f"Could not remove local card files for {reg_no}: {e}")

    def deliver_card(self, registration, enrollment):
        """
        Render, publish and email the ID card, then clear local files.
        The delivery claim is released whether or not this succeeds.

        Returns:
            str: public URL of the published card
        """
        try:
            card_path = self._run_step(
                'render_card', self.renderer.generate,
                self.card_details(registration, enrollment), photo_url=registration.photo,
            )
            card_url = self._run_step('publish_card', self.store.upload, card_path, self.card_folder)
            enrollment.card_url = card_url
            enrollment.save(update_fields=['card_url'])

            self._run_step('notify', self.mailer, registration, enrollment, card_path)
            enrollment.card_sent_at = timezone.now()
            enrollment.delivery_claimed_at = None
            enrollment.save(update_fields=['card_sent_at', 'delivery_claimed_at'])
        except Exception:
            self._release_claim(enrollment)
            raise
        finally:
            self._cleanup(registration.reg_no)

        logger.info(f"ID card for {registration.reg_no} sent to {registration.email}")
        return card_url
