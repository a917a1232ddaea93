"""
Utility functions for the registrations app.
"""
import uuid
from datetime import date, datetime
from django.conf import settings
from django.db import transaction
from django.utils import timezone
import logging

logger = logging.getLogger(__name__)

REG_NO_PREFIX = "ATH"
REG_NO_DIGITS = 14


def generate_reg_no():
    """
    Return a new registration number: ATH followed by 14 digits.

    The digits come from a random UUID so two registrations submitted in the
    same millisecond still get different numbers.
    """
    return f"{REG_NO_PREFIX}{uuid.uuid4().int % 10 ** REG_NO_DIGITS:0{REG_NO_DIGITS}d}"


def calculate_amount(email):
    """
    Registration fee in paise for the given applicant email.
    The federation's own address pays a token amount; everyone else pays the
    standard fee.
    """
    exempt = (settings.FEE_EXEMPT_EMAIL or '').strip().lower()
    if exempt and (email or '').strip().lower() == exempt:
        return settings.FEE_EXEMPT_AMOUNT
    return settings.REGISTRATION_FEE


def format_enrollment_number(sequence):
    """
    Return enrollment number for the given 1-based sequence,
    e.g. 1 -> JKTA1001 with the default prefix and base.
    """
    return f"{settings.ENROLLMENT_PREFIX}{settings.ENROLLMENT_BASE + int(sequence)}"


def next_enrollment_sequence():
    """
    Atomically increment and return the enrollment sequence.

    The counter row is locked for the rest of the surrounding transaction, so
    two concurrent fulfillments can never read the same value. On first use the
    counter is seeded from the number of existing enrollments.
    """
    from .models import AthleteEnrollment, EnrollmentSequence

    with transaction.atomic():
        sequence = EnrollmentSequence.objects.select_for_update().filter(pk=1).first()
        if sequence is None:
            EnrollmentSequence.objects.get_or_create(
                pk=1, defaults={'last_value': AthleteEnrollment.objects.count()}
            )
            sequence = EnrollmentSequence.objects.select_for_update().get(pk=1)
        sequence.last_value += 1
        sequence.save(update_fields=['last_value', 'updated_at'])
        logger.debug(f"Enrollment sequence advanced to {sequence.last_value}")
        return sequence.last_value


def expiry_date(created_at):
    """
    Card validity: one year from the registration date, as DD-MM-YYYY.
    A registration made on 29 February expires on 28 February.
    """
    if isinstance(created_at, datetime):
        if timezone.is_aware(created_at):
            created_at = timezone.localtime(created_at)
        start = created_at.date()
    else:
        start = created_at
    try:
        valid_until = start.replace(year=start.year + 1)
    except ValueError:
        valid_until = date(start.year + 1, 2, 28)
    return valid_until.strftime('%d-%m-%Y')


def format_dob(dob):
    """Date of birth as printed on the card."""
    if hasattr(dob, 'strftime'):
        return dob.strftime('%d-%m-%Y')
    return str(dob)


def card_filename(reg_no):
    """File name of the rendered ID card for a registration number."""
    return f"{reg_no}-identity-card.pdf"
