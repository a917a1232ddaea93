import json
import os
import tempfile
from datetime import timedelta
from unittest import mock

from django.core import mail
from django.test import TestCase
from django.urls import reverse
from django.utils import timezone

from registrations.cards import IdentityCardRenderer
from registrations.emails import send_id_card_email
from registrations.exceptions import FulfillmentStepError
from registrations.fulfillment import (
    ALREADY_FULFILLED,
    FULFILLED,
    IN_PROGRESS,
    NOT_FOUND,
    REJECTED,
    PaymentFulfillment,
)
from registrations.models import AthleteEnrollment, PaymentActivity, Registration

from .fakes import FakeS3Client, TEST_ORDER_ID, make_gateway, make_registration, make_store, sign

PAYMENT_ID = 'pay_TEST000001'


class FulfillmentTestMixin:

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmp.cleanup)
        self.work_dir = self.tmp.name

        self.s3 = FakeS3Client()
        self.mailer = mock.Mock(wraps=self.send_and_check_attachment)
        self.fulfillment = PaymentFulfillment(
            gateway=make_gateway(),
            store=make_store(self.s3),
            renderer=IdentityCardRenderer(self.work_dir),
            mailer=self.mailer,
        )
        self.registration = make_registration()

    def send_and_check_attachment(self, registration, enrollment, card_path):
        # The card must still be on disk while the email is built
        self.assertTrue(os.path.exists(card_path))
        send_id_card_email(registration, enrollment, card_path)

    def callback(self, registration=None, order_id=TEST_ORDER_ID, payment_id=PAYMENT_ID, signature=None):
        registration = registration or self.registration
        return {
            'razorpay_order_id': order_id,
            'razorpay_payment_id': payment_id,
            'razorpay_signature': signature if signature is not None else sign(order_id, payment_id),
            'userId': str(registration.id),
        }


class VerifyPaymentViewTests(FulfillmentTestMixin, TestCase):

    def setUp(self):
        super().setUp()
        patcher = mock.patch('registrations.views.get_fulfillment', return_value=self.fulfillment)
        patcher.start()
        self.addCleanup(patcher.stop)

    def post(self, payload):
        return self.client.post(reverse('verify_payment'), json.dumps(payload), content_type='application/json')

    def test_valid_callback_enrolls_and_emails_card(self):
        response = self.post(self.callback())

        self.assertEqual(response.status_code, 201)
        self.registration.refresh_from_db()
        enrollment = AthleteEnrollment.objects.get()
        body = response.json()
        self.assertEqual(body['message'], 'Email Sent successfully')
        self.assertTrue(body['success'])
        self.assertEqual(body['paymentId'], PAYMENT_ID)
        self.assertEqual(body['email'], 'x@y.com')
        self.assertEqual(body['regNo'], self.registration.reg_no)
        self.assertEqual(body['name'], 'Aamir Khan')
        self.assertEqual(body['enrollmentNumber'], 'JKTA1001')
        self.assertTrue(body['pdfUrl'].startswith('https://cdn.example.com/idcards/'))

        self.assertTrue(self.registration.payment)
        self.assertEqual(self.registration.razorpay_payment_id, PAYMENT_ID)
        self.assertEqual(enrollment.registration, self.registration)
        self.assertEqual(enrollment.card_url, body['pdfUrl'])
        self.assertIsNotNone(enrollment.card_sent_at)

        self.assertEqual(len(mail.outbox), 1)
        message = mail.outbox[0]
        self.assertEqual(message.to, ['x@y.com'])
        self.assertEqual(message.subject, 'Here is your ID card from JKTA')
        filename, content, mimetype = message.attachments[0]
        self.assertEqual(filename, f'{self.registration.reg_no}-identity-card.pdf')
        self.assertEqual(mimetype, 'application/pdf')
        self.assertTrue(content.startswith(b'%PDF'))

        self.assertEqual(os.listdir(self.work_dir), [])

    def test_form_encoded_callback_is_accepted(self):
        response = self.client.post(reverse('verify_payment'), self.callback())
        self.assertEqual(response.status_code, 201)

    def test_wrong_signature_changes_nothing(self):
        good = sign(TEST_ORDER_ID, PAYMENT_ID)
        tampered = good[:-1] + ('1' if good[-1] == '0' else '0')

        response = self.post(self.callback(signature=tampered))

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json(), {'success': False, 'message': 'Payment verification failed'})
        self.registration.refresh_from_db()
        self.assertFalse(self.registration.payment)
        self.assertFalse(AthleteEnrollment.objects.exists())
        self.assertFalse(PaymentActivity.objects.exists())
        self.assertEqual(len(mail.outbox), 0)
        self.assertEqual(self.s3.uploads, [])

    def test_non_ascii_signature_is_a_verification_failure(self):
        response = self.post(self.callback(signature='é' * 64))

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json(), {'success': False, 'message': 'Payment verification failed'})
        self.registration.refresh_from_db()
        self.assertFalse(self.registration.payment)

    def test_callback_while_card_is_being_delivered_is_a_conflict(self):
        AthleteEnrollment.objects.create(
            enrollment_number='JKTA1001', registration=self.registration,
            delivery_claimed_at=timezone.now(),
        )

        response = self.post(self.callback())

        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.json(), {'success': False, 'message': 'Payment is already being processed'})
        self.mailer.assert_not_called()
        self.assertEqual(self.s3.uploads, [])

    def test_signature_for_another_order_is_rejected(self):
        payload = self.callback(order_id='order_OTHER', signature=sign('order_OTHER', PAYMENT_ID))

        response = self.post(payload)

        self.assertEqual(response.status_code, 400)
        self.registration.refresh_from_db()
        self.assertFalse(self.registration.payment)

    def test_unknown_registration(self):
        registration = make_registration(razorpay_order_id='order_GONE')
        payload = self.callback(registration)
        registration.delete()

        response = self.post(payload)

        self.assertEqual(response.status_code, 404)
        self.assertFalse(response.json()['success'])

    def test_missing_fields_are_rejected(self):
        payload = self.callback()
        del payload['razorpay_signature']

        response = self.post(payload)

        self.assertEqual(response.status_code, 400)
        self.assertFalse(response.json()['success'])

    def test_duplicate_callback_does_not_enroll_twice(self):
        first = self.post(self.callback())
        second = self.post(self.callback())

        self.assertEqual(first.status_code, 201)
        self.assertEqual(second.status_code, 200)
        self.assertEqual(second.json()['message'], 'Payment already processed')
        self.assertEqual(second.json()['pdfUrl'], first.json()['pdfUrl'])
        self.assertEqual(AthleteEnrollment.objects.count(), 1)
        self.assertEqual(len(mail.outbox), 1)

    def test_mail_failure_reports_error_and_still_cleans_up(self):
        self.mailer.side_effect = ConnectionRefusedError('SMTP down')

        response = self.post(self.callback())

        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json(), {'success': False, 'message': 'Internal server error'})
        self.assertEqual(os.listdir(self.work_dir), [])
        # Earlier steps are not rolled back
        self.registration.refresh_from_db()
        self.assertTrue(self.registration.payment)
        enrollment = AthleteEnrollment.objects.get()
        self.assertIsNone(enrollment.card_sent_at)
        self.assertIsNone(enrollment.delivery_claimed_at)

    def test_retry_after_mail_failure_reuses_enrollment(self):
        self.mailer.side_effect = ConnectionRefusedError('SMTP down')
        self.post(self.callback())
        self.mailer.side_effect = None

        response = self.post(self.callback())

        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()['enrollmentNumber'], 'JKTA1001')
        self.assertEqual(AthleteEnrollment.objects.count(), 1)
        self.assertEqual(len(mail.outbox), 1)

    def test_get_is_not_allowed(self):
        self.assertEqual(self.client.get(reverse('verify_payment')).status_code, 405)


class PaymentFulfillmentTests(FulfillmentTestMixin, TestCase):

    def fulfill(self, registration=None, **kwargs):
        payload = self.callback(registration, **kwargs)
        return self.fulfillment.fulfill(
            payload['razorpay_order_id'],
            payload['razorpay_payment_id'],
            payload['razorpay_signature'],
            payload['userId'],
        )

    def test_enrollment_numbers_follow_number_of_enrollments(self):
        second = make_registration(razorpay_order_id='order_SECOND')
        third = make_registration(razorpay_order_id='order_THIRD')

        outcomes = [
            self.fulfill(),
            self.fulfill(second, order_id='order_SECOND'),
            self.fulfill(third, order_id='order_THIRD'),
        ]

        self.assertEqual([o.status for o in outcomes], [FULFILLED] * 3)
        self.assertEqual(
            [o.enrollment.enrollment_number for o in outcomes],
            ['JKTA1001', 'JKTA1002', 'JKTA1003'],
        )

    def test_numbering_continues_after_existing_enrollments(self):
        for i in range(4):
            AthleteEnrollment.objects.create(
                enrollment_number=f'JKTA{1001 + i}',
                registration=make_registration(razorpay_order_id=f'order_OLD{i}'),
            )

        outcome = self.fulfill()

        self.assertEqual(outcome.enrollment.enrollment_number, 'JKTA1005')

    def test_rejected_outcome_for_bad_signature(self):
        outcome = self.fulfill(signature='0' * 64)

        self.assertEqual(outcome.status, REJECTED)
        self.mailer.assert_not_called()

    def test_not_found_outcome(self):
        outcome = self.fulfillment.fulfill(
            TEST_ORDER_ID, PAYMENT_ID, sign(TEST_ORDER_ID, PAYMENT_ID),
            '00000000-0000-0000-0000-000000000000',
        )
        self.assertEqual(outcome.status, NOT_FOUND)

    def test_second_fulfillment_short_circuits(self):
        self.fulfill()
        outcome = self.fulfill()

        self.assertEqual(outcome.status, ALREADY_FULFILLED)
        self.assertEqual(self.mailer.call_count, 1)
        self.assertEqual(len(self.s3.uploads), 1)

    def test_card_carries_registration_details(self):
        details = self.fulfillment.card_details(
            self.registration, AthleteEnrollment(enrollment_number='JKTA1001'))

        self.assertEqual(details.id, self.registration.reg_no)
        self.assertEqual(details.enrollment_no, 'JKTA1001')
        self.assertEqual(details.type, 'A')
        self.assertEqual(details.name, 'Aamir Khan')
        self.assertEqual(details.parentage, 'Bashir Khan')
        self.assertEqual(details.gender, 'Male')
        self.assertEqual(details.district, 'Srinagar')
        self.assertEqual(details.dob, '17-05-2008')
        self.assertRegex(details.valid, r'^\d{2}-\d{2}-\d{4}$')

    def test_publish_failure_names_step_and_cleans_up(self):
        self.s3.fail_with = OSError('bucket unreachable')

        with self.assertRaises(FulfillmentStepError) as ctx:
            self.fulfill()

        self.assertEqual(ctx.exception.step, 'publish_card')
        self.mailer.assert_not_called()
        self.assertEqual(os.listdir(self.work_dir), [])
        self.assertTrue(Registration.objects.get(pk=self.registration.pk).payment)

    def test_render_failure_names_step(self):
        with mock.patch.object(self.fulfillment.renderer, 'generate', side_effect=RuntimeError('no fonts')):
            with self.assertRaises(FulfillmentStepError) as ctx:
                self.fulfill()

        self.assertEqual(ctx.exception.step, 'render_card')
        self.assertEqual(self.s3.uploads, [])

    def test_registration_without_stored_order_is_rejected(self):
        registration = make_registration(razorpay_order_id=None)

        outcome = self.fulfill(registration, order_id='order_ELSEWHERE')

        self.assertEqual(outcome.status, REJECTED)
        registration.refresh_from_db()
        self.assertFalse(registration.payment)
        self.assertFalse(AthleteEnrollment.objects.exists())

    def test_duplicate_arriving_mid_delivery_backs_off(self):
        duplicates = []

        def mail_while_duplicate_arrives(registration, enrollment, card_path):
            duplicates.append(self.fulfill())
            # The duplicate must not have removed the card being mailed
            self.assertTrue(os.path.exists(card_path))
            send_id_card_email(registration, enrollment, card_path)

        self.mailer.side_effect = mail_while_duplicate_arrives

        outcome = self.fulfill()

        self.assertEqual(outcome.status, FULFILLED)
        self.assertEqual([d.status for d in duplicates], [IN_PROGRESS])
        self.assertEqual(len(self.s3.uploads), 1)
        self.assertEqual(len(mail.outbox), 1)
        enrollment = AthleteEnrollment.objects.get()
        self.assertIsNotNone(enrollment.card_sent_at)
        self.assertIsNone(enrollment.delivery_claimed_at)
        self.assertEqual(os.listdir(self.work_dir), [])

    def test_abandoned_claim_is_taken_over(self):
        AthleteEnrollment.objects.create(
            enrollment_number='JKTA1001', registration=self.registration,
            delivery_claimed_at=timezone.now() - timedelta(hours=1),
        )

        outcome = self.fulfill()

        self.assertEqual(outcome.status, FULFILLED)
        self.assertEqual(outcome.enrollment.enrollment_number, 'JKTA1001')
        self.assertEqual(len(mail.outbox), 1)

    def test_cleanup_failure_does_not_fail_delivered_card(self):
        with mock.patch.object(self.fulfillment.renderer, 'delete_files',
                               side_effect=PermissionError('read-only')):
            outcome = self.fulfill()

        self.assertEqual(outcome.status, FULFILLED)
        self.assertEqual(len(mail.outbox), 1)

    def test_cleanup_failure_keeps_step_error(self):
        self.mailer.side_effect = ConnectionRefusedError('SMTP down')

        with mock.patch.object(self.fulfillment.renderer, 'delete_files',
                               side_effect=PermissionError('read-only')):
            with self.assertRaises(FulfillmentStepError) as ctx:
                self.fulfill()

        self.assertEqual(ctx.exception.step, 'notify')

    def test_resend_card_delivers_again(self):
        first = self.fulfill()

        url = self.fulfillment.resend_card(first.registration)

        self.assertNotEqual(url, first.card_url)
        self.assertEqual(self.mailer.call_count, 2)
        self.assertEqual(AthleteEnrollment.objects.count(), 1)
        self.assertEqual(AthleteEnrollment.objects.get().card_url, url)

    def test_resend_card_waits_for_running_delivery(self):
        AthleteEnrollment.objects.create(
            enrollment_number='JKTA1001', registration=self.registration,
            delivery_claimed_at=timezone.now(),
        )

        self.assertIsNone(self.fulfillment.resend_card(self.registration))
        self.mailer.assert_not_called()
        self.assertEqual(os.listdir(self.work_dir), [])
