import json
import logging

from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_POST

from sammilan.errors import ApiError, ValidationError, error_response
from .services import create_donation_order, verify_payment

logger = logging.getLogger(__name__)


def _json_body(request):
    try:
        body = json.loads(request.body.decode("utf-8"))
    except (ValueError, UnicodeDecodeError):
        return None
    return body if isinstance(body, dict) else None


@csrf_exempt
@require_POST
def create_order_view(request):
    body = _json_body(request)
    if body is None:
        return error_response(ValidationError("Invalid JSON body"))

    try:
        result = create_donation_order(body)
    except ValidationError as e:
        return error_response(e)
    except Exception:
        # Donor keeps the form data and can retry; only log the details.
        logger.exception("Error creating Razorpay order")
        return JsonResponse({"error": "Unable to create order"}, status=500)

    return JsonResponse(result)


@csrf_exempt
@require_POST
def verify_view(request):
    body = _json_body(request)
    if body is None:
        return error_response(ValidationError("Invalid payment data"))

    try:
        result = verify_payment(
            order_id=body.get("razorpay_order_id"),
            payment_id=body.get("razorpay_payment_id"),
            signature=body.get("razorpay_signature"),
        )
    except ApiError as e:
        return error_response(e)
    except Exception:
        logger.exception("Error verifying Razorpay payment")
        return JsonResponse({"error": "Unable to verify payment"}, status=500)

    return JsonResponse(result)
