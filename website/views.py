import json
import logging

from django.http import JsonResponse
from django.shortcuts import render
from django.utils import timezone
from django.utils.dateparse import parse_datetime
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_http_methods, require_POST

from dashboard.auth import admin_from_request
from sammilan.errors import AuthError, error_response
from .emails import send_contact_notification
from .models import ContactMessage, Event

logger = logging.getLogger(__name__)


def _json_body(request):
    try:
        body = json.loads(request.body.decode("utf-8"))
    except (ValueError, UnicodeDecodeError):
        return None
    return body if isinstance(body, dict) else None


def _upcoming_events():
    return Event.objects.filter(date__gte=timezone.now()).order_by("date")


@require_GET
def home_view(request):
    return render(request, "website/home.html", {"events": _upcoming_events()[:6]})


@csrf_exempt
@require_http_methods(["GET", "POST"])
def events_api(request):
    if request.method == "GET":
        return JsonResponse([e.to_dict() for e in _upcoming_events()], safe=False)

    if not admin_from_request(request):
        return error_response(AuthError())

    body = _json_body(request) or {}
    title = (body.get("title") or "").strip()
    description = (body.get("description") or "").strip()
    raw_date = body.get("dateTime") or ""
    if not title or not raw_date:
        return JsonResponse({"error": "Title and dateTime are required"}, status=400)

    try:
        when = parse_datetime(str(raw_date).replace("Z", "+00:00"))
    except ValueError:
        when = None
    if when is None:
        return JsonResponse({"error": "Invalid dateTime"}, status=400)
    if timezone.is_naive(when):
        when = timezone.make_aware(when)

    event = Event.objects.create(title=title, description=description, date=when)
    return JsonResponse(event.to_dict(), status=201)


@csrf_exempt
@require_POST
def contact_api(request):
    body = _json_body(request) or {}
    name = (body.get("name") or "").strip()
    email = (body.get("email") or "").strip()
    message = (body.get("message") or "").strip()
    if not name or not email or not message:
        return JsonResponse({"error": "Name, email and message are required."}, status=400)

    try:
        contact = ContactMessage.objects.create(
            name=name,
            email=email,
            phone=(body.get("phone") or "").strip() or None,
            subject=(body.get("subject") or "").strip() or None,
            message=message,
        )
    except Exception:
        logger.exception("Error handling contact form")
        return JsonResponse({"error": "Something went wrong while submitting your query."}, status=500)

    send_contact_notification(message=contact)
    return JsonResponse({"success": True})
