import logging

from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_POST

from sammilan.errors import ApiError, error_response
from .services import apply_webhook

logger = logging.getLogger(__name__)

SIGNATURE_HEADER = "X-Razorpay-Signature"


@csrf_exempt
@require_POST
def razorpay_webhook(request):
    # Razorpay retries on any non-2xx, so everything below must be replay-safe.
    try:
        apply_webhook(request.body, request.headers.get(SIGNATURE_HEADER))
    except ApiError as e:
        return error_response(e)
    except Exception:
        logger.exception("Error handling Razorpay webhook")
        return JsonResponse({"error": "Webhook error"}, status=500)

    return JsonResponse({"received": True})
