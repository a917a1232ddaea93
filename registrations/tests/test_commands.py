from io import StringIO
from unittest import mock

from django.core.management import call_command
from django.core.management.base import CommandError
from django.test import TestCase
from django.urls import reverse

from registrations.exceptions import FulfillmentStepError
from registrations.models import AthleteEnrollment

from .fakes import make_registration


class ResendIdCardCommandTests(TestCase):

    def setUp(self):
        self.registration = make_registration(payment=True, razorpay_payment_id='pay_1')
        self.enrollment = AthleteEnrollment.objects.create(
            enrollment_number='JKTA1001', registration=self.registration)
        self.fulfillment = mock.Mock()
        self.fulfillment.resend_card.return_value = 'https://cdn.example.com/idcards/card.pdf'
        patcher = mock.patch(
            'registrations.management.commands.resend_id_card.get_fulfillment',
            return_value=self.fulfillment,
        )
        patcher.start()
        self.addCleanup(patcher.stop)

    def test_resends_card(self):
        out = StringIO()
        call_command('resend_id_card', self.registration.reg_no, stdout=out)

        self.fulfillment.resend_card.assert_called_once()
        (registration,) = self.fulfillment.resend_card.call_args[0]
        self.assertEqual(registration.pk, self.registration.pk)
        self.assertIn('JKTA1001', out.getvalue())

    def test_running_delivery_becomes_command_error(self):
        self.fulfillment.resend_card.return_value = None
        with self.assertRaisesMessage(CommandError, 'already running'):
            call_command('resend_id_card', self.registration.reg_no, stdout=StringIO())

    def test_dry_run_does_not_send(self):
        out = StringIO()
        call_command('resend_id_card', self.registration.reg_no.lower(), '--dry-run', stdout=out)

        self.fulfillment.resend_card.assert_not_called()
        self.assertIn('Dry run', out.getvalue())

    def test_unknown_registration(self):
        with self.assertRaises(CommandError):
            call_command('resend_id_card', 'ATH00000000000000')

    def test_unpaid_registration(self):
        unpaid = make_registration(razorpay_order_id='order_UNPAID')
        with self.assertRaises(CommandError):
            call_command('resend_id_card', unpaid.reg_no)
        self.fulfillment.resend_card.assert_not_called()

    def test_step_failure_becomes_command_error(self):
        self.fulfillment.resend_card.side_effect = FulfillmentStepError('notify', OSError('SMTP down'))
        with self.assertRaisesMessage(CommandError, 'notify'):
            call_command('resend_id_card', self.registration.reg_no, stdout=StringIO())


class RegistrationStatusViewTests(TestCase):

    def test_unpaid(self):
        registration = make_registration()
        response = self.client.get(reverse('registration_status', args=[registration.reg_no]))

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {
            'regNo': registration.reg_no,
            'name': 'Aamir Khan',
            'paid': False,
            'enrollmentNumber': None,
            'cardUrl': None,
        })

    def test_enrolled(self):
        registration = make_registration(payment=True)
        AthleteEnrollment.objects.create(
            enrollment_number='JKTA1001', registration=registration, card_url='https://cdn.example.com/c.pdf')

        body = self.client.get(reverse('registration_status', args=[registration.reg_no])).json()

        self.assertTrue(body['paid'])
        self.assertEqual(body['enrollmentNumber'], 'JKTA1001')
        self.assertEqual(body['cardUrl'], 'https://cdn.example.com/c.pdf')

    def test_unknown(self):
        response = self.client.get(reverse('registration_status', args=['ATH00000000000000']))
        self.assertEqual(response.status_code, 404)
