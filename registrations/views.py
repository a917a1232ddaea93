"""
API views for athlete registration and Razorpay payment verification.
"""
from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_http_methods
from .exceptions import RegistrationError
from .forms import AthleteRegistrationForm
from .fulfillment import ALREADY_FULFILLED, IN_PROGRESS, NOT_FOUND, REJECTED
from .models import Registration
from .serializers import PaymentCallbackSerializer
from .services import get_fulfillment, get_intake
import json
import logging

logger = logging.getLogger(__name__)


def _parse_body_json(request):
    """Read JSON body and return dict. Return {} if not JSON or invalid."""
    if request.content_type and 'application/json' in request.content_type:
        try:
            return json.loads(request.body)
        except (json.JSONDecodeError, TypeError, UnicodeDecodeError):
            pass
    return {}


@csrf_exempt
@require_http_methods(["POST"])
def register(request):
    """
    Accept the registration form with up to five documents and open a
    Razorpay order for the fee.
    """
    form = AthleteRegistrationForm(request.POST, request.FILES)
    if not form.is_valid():
        return JsonResponse({
            'error': 'Form validation failed',
            'errors': form.errors,
        }, status=400)

    try:
        result = get_intake().register(form.applicant_fields(), form.document_files())
    except RegistrationError as e:
        logger.exception(f"Error in register: {e}")
        return JsonResponse({
            'error': 'An error occurred while registering the user.',
        }, status=500)
    except Exception:
        logger.exception("Unexpected error in register")
        return JsonResponse({
            'error': 'An error occurred while registering the user.',
        }, status=500)

    # Send order details to the client for checkout
    return JsonResponse({
        'success': True,
        'orderId': result.order.id,
        'amount': result.order.amount,
        'currency': result.order.currency,
        'userId': str(result.registration.id),
        'regNo': result.registration.reg_no,
    }, status=200)


@csrf_exempt
@require_http_methods(["POST"])
def verify_payment(request):
    """
    Verify the Razorpay checkout signature, enroll the athlete and email the
    ID card. Accepts a JSON or form-encoded body.
    """
    payload = _parse_body_json(request) or request.POST
    serializer = PaymentCallbackSerializer(data=payload)
    if not serializer.is_valid():
        return JsonResponse({
            'success': False,
            'message': 'Invalid payment callback',
            'errors': serializer.errors,
        }, status=400)
    data = serializer.validated_data

    try:
        outcome = get_fulfillment().fulfill(
            order_id=data['razorpay_order_id'],
            payment_id=data['razorpay_payment_id'],
            signature=data['razorpay_signature'],
            registration_id=data['userId'],
        )
    except RegistrationError as e:
        logger.exception(f"Error in verifying payment for order {data['razorpay_order_id']}: {e}")
        return JsonResponse({
            'success': False,
            'message': 'Internal server error',
        }, status=500)
    except Exception:
        logger.exception(f"Unexpected error verifying payment for order {data['razorpay_order_id']}")
        return JsonResponse({
            'success': False,
            'message': 'Internal server error',
        }, status=500)

    if outcome.status == REJECTED:
        return JsonResponse({
            'success': False,
            'message': 'Payment verification failed',
        }, status=400)
    if outcome.status == NOT_FOUND:
        return JsonResponse({
            'success': False,
            'message': 'Registration not found',
        }, status=404)
    if outcome.status == IN_PROGRESS:
        return JsonResponse({
            'success': False,
            'message': 'Payment is already being processed',
        }, status=409)

    registration = outcome.registration
    already_done = outcome.status == ALREADY_FULFILLED
    return JsonResponse({
        'message': 'Payment already processed' if already_done else 'Email Sent successfully',
        'success': True,
        'paymentId': outcome.payment_id,
        'email': registration.email,
        'regNo': registration.reg_no,
        'name': registration.athlete_name,
        'enrollmentNumber': outcome.enrollment.enrollment_number,
        'pdfUrl': outcome.card_url,
    }, status=200 if already_done else 201)


@require_http_methods(["GET"])
def registration_status(request, reg_no):
    """
    Let an applicant check payment and enrollment by registration number.
    """
    try:
        registration = Registration.objects.select_related('enrollment').get(reg_no=reg_no)
    except Registration.DoesNotExist:
        return JsonResponse({'error': 'Registration not found'}, status=404)

    enrollment = registration.enrollment_or_none
    return JsonResponse({
        'regNo': registration.reg_no,
        'name': registration.athlete_name,
        'paid': registration.payment,
        'enrollmentNumber': enrollment.enrollment_number if enrollment else None,
        'cardUrl': enrollment.card_url if enrollment else None,
    })
