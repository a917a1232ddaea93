"""
Email sending functions for ID card delivery.
"""
from django.core.mail import EmailMultiAlternatives
from django.template.loader import render_to_string
from django.conf import settings
import logging
import mimetypes
import os

from .utils import card_filename

logger = logging.getLogger(__name__)

ID_CARD_SUBJECT = "Here is your ID card from JKTA"
ID_CARD_BODY = "Please find your ID card attached below"


def send_with_attachment(to_address, subject, text_body, html_body, attachment_name, attachment_path):
    """
    Send a single email with an HTML alternative and one file attached.

    Raises on failure; callers decide whether a failed email matters.
    """
    message = EmailMultiAlternatives(
        subject=subject,
        body=text_body,
        from_email=settings.DEFAULT_FROM_EMAIL,
        to=[to_address],
    )
    if html_body:
        message.attach_alternative(html_body, "text/html")

    mimetype = mimetypes.guess_type(attachment_name)[0] or 'application/octet-stream'
    with open(attachment_path, 'rb') as f:
        message.attach(attachment_name, f.read(), mimetype)

    message.send(fail_silently=False)
    logger.info(f"Email '{subject}' sent to {to_address} with {os.path.basename(attachment_name)}")


def send_id_card_email(registration, enrollment, card_path):
    """
    Email the rendered ID card to the athlete.

    Args:
        registration: Registration instance
        enrollment: AthleteEnrollment instance
        card_path: local path of the rendered PDF
    """
    context = {
        'registration': registration,
        'enrollment': enrollment,
        'body': ID_CARD_BODY,
        'support_email': getattr(settings, 'SUPPORT_EMAIL', 'info@jkta.in'),
    }
    html_message = render_to_string('registrations/emails/id_card.html', context)

    send_with_attachment(
        registration.email,
        ID_CARD_SUBJECT,
        ID_CARD_BODY,
        html_message,
        card_filename(registration.reg_no),
        str(card_path),
    )
