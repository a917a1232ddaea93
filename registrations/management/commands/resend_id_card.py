"""
Management command to render and email an athlete's ID card again.

Use when the original email bounced or the applicant lost the card.

Run: python manage.py resend_id_card ATH12345678901234
Use --dry-run to only print what would be sent.
"""
from django.core.management.base import BaseCommand, CommandError

from registrations.exceptions import FulfillmentStepError
from registrations.models import Registration
from registrations.services import get_fulfillment


class Command(BaseCommand):
    help = 'Re-render, re-upload and re-send the ID card of a paid registration'

    def add_arguments(self, parser):
        parser.add_argument('reg_no', help='Registration number, e.g. ATH12345678901234')
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Only show what would be sent, do not render or email.',
        )

    def handle(self, *args, **options):
        reg_no = options['reg_no'].strip().upper()
        try:
            registration = Registration.objects.select_related('enrollment').get(reg_no=reg_no)
        except Registration.DoesNotExist:
            raise CommandError(f'No registration found with number {reg_no}')

        if not registration.payment:
            raise CommandError(f'{reg_no} has not been paid yet')
        enrollment = registration.enrollment_or_none
        if enrollment is None:
            raise CommandError(f'{reg_no} is paid but has no enrollment record')

        if options['dry_run']:
            self.stdout.write(self.style.WARNING('Dry run: no card will be rendered or sent.'))
            self.stdout.write(f'  {registration.athlete_name} ({enrollment.enrollment_number}) -> {registration.email}')
            return

        try:
            card_url = get_fulfillment().resend_card(registration)
        except FulfillmentStepError as e:
            raise CommandError(f'Could not resend ID card for {reg_no}: {e}')
        if card_url is None:
            raise CommandError(f'A card delivery for {reg_no} is already running, try again later')

        self.stdout.write(self.style.SUCCESS(
            f'ID card {enrollment.enrollment_number} sent to {registration.email} ({card_url})'
        ))
