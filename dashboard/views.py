import json
import logging
import math

from django.contrib.auth.hashers import make_password
from django.db.models import Sum
from django.http import HttpResponse, JsonResponse
from django.shortcuts import redirect, render
from django.utils.dateparse import parse_date
from django.views.decorators.cache import never_cache
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_POST

from donations.models import Donation
from sammilan.errors import ValidationError, error_response
from . import analytics
from .auth import (
    admin_api_required,
    admin_page_required,
    clear_admin_cookie,
    current_admin,
    set_admin_cookie,
    sign_admin_token,
)
from .models import AdminUser

logger = logging.getLogger(__name__)

TOP_DONORS_LIMIT = 5


def _json_body(request):
    try:
        body = json.loads(request.body.decode("utf-8"))
    except (ValueError, UnicodeDecodeError):
        return None
    return body if isinstance(body, dict) else None


def _number(raw):
    if raw in (None, ""):
        return None
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return None
    return value if math.isfinite(value) else None


def _invalid_credentials():
    return JsonResponse({"error": "Invalid credentials"}, status=401)


# ---------- API ----------

@csrf_exempt
@require_POST
def login_api(request):
    body = _json_body(request) or {}
    email = (body.get("email") or "").strip()
    password = body.get("password") or ""
    if not email or not password:
        return JsonResponse({"error": "Email and password are required"}, status=400)

    try:
        admin = AdminUser.objects.filter(email__iexact=email).first()
        if admin is None:
            # Spend the same hashing time as a real check so unknown emails
            # are not distinguishable by latency.
            make_password(password)
            return _invalid_credentials()
        if not admin.check_password(password):
            return _invalid_credentials()

        token = sign_admin_token(admin.pk, admin.email)
    except Exception:
        logger.exception("Admin login error")
        return JsonResponse({"error": "Server error"}, status=500)

    logger.info("Admin %s signed in", admin.email)
    resp = JsonResponse({"ok": True})
    set_admin_cookie(resp, token)
    resp["Cache-Control"] = "no-store"
    return resp


@csrf_exempt
@require_POST
def logout_api(request):
    resp = JsonResponse({"ok": True, "message": "Logged out successfully"})
    clear_admin_cookie(resp)
    resp["Cache-Control"] = "no-store"
    return resp


def _top_donors(limit=TOP_DONORS_LIMIT):
    rows = (
        Donation.objects.filter(status=Donation.SUCCESS)
        .values("donor_email", "donor_name")
        .annotate(total=Sum("amount"))
        .order_by("-total")
    )
    if limit is not None:
        rows = rows[:limit]
    return [
        {"email": r["donor_email"], "name": r["donor_name"], "totalAmount": r["total"] or 0}
        for r in rows
    ]


@require_GET
@admin_api_required
def donations_api(request):
    qs = Donation.objects.order_by("-created_at")
    min_amount = _number(request.GET.get("minAmount"))
    max_amount = _number(request.GET.get("maxAmount"))
    if min_amount is not None:
        qs = qs.filter(amount__gte=min_amount)
    if max_amount is not None:
        qs = qs.filter(amount__lte=max_amount)

    return JsonResponse({
        "donations": [d.to_dict() for d in qs],
        "topDonors": _top_donors(),
    })


def _analytics_params(request) -> dict:
    timeframe = request.GET.get("timeframe") or "daily"
    if timeframe not in analytics.TIMEFRAMES:
        raise ValidationError("timeframe must be one of daily, monthly, yearly")

    try:
        daily_range = int(request.GET.get("range") or 30)
    except ValueError:
        daily_range = None
    if daily_range not in analytics.DAILY_RANGES:
        raise ValidationError("range must be one of 30, 60, 90")

    dates = {}
    for name in ("from", "to"):
        raw = request.GET.get(name)
        value = None
        if raw:
            try:
                value = parse_date(raw)
            except ValueError:
                value = None
            if value is None:
                raise ValidationError(f"{name} must be a YYYY-MM-DD date")
        dates[name] = value

    return {"timeframe": timeframe, "daily_range": daily_range,
            "date_from": dates["from"], "date_to": dates["to"]}


def _chart(params: dict):
    donations = list(Donation.objects.filter(status=Donation.SUCCESS))
    points = analytics.bucket(donations, **params)
    comparison = None
    if params["timeframe"] == "daily" and params["daily_range"] == 30 and not params["date_from"]:
        comparison = analytics.compare_30(donations)
    return points, comparison


@require_GET
@admin_api_required
def analytics_api(request):
    try:
        params = _analytics_params(request)
    except ValidationError as e:
        return error_response(e)
    points, comparison = _chart(params)
    return JsonResponse({"points": points, "comparison": comparison})


@require_GET
@admin_api_required
def analytics_csv(request):
    try:
        params = _analytics_params(request)
    except ValidationError as e:
        return error_response(e)
    points, _ = _chart(params)
    resp = HttpResponse(analytics.to_csv(points), content_type="text/csv")
    resp["Content-Disposition"] = 'attachment; filename="donation-analytics.csv"'
    return resp


# ---------- Pages ----------

@never_cache
def login_page(request):
    if current_admin(request):
        return redirect("dashboard:home")
    return render(request, "dashboard/login.html")


@never_cache
@admin_page_required
def dashboard_page(request):
    donations = list(Donation.objects.all())
    done = analytics.completed(donations)
    listed = analytics.filter_amount(
        done,
        _number(request.GET.get("min")),
        _number(request.GET.get("max")),
    )
    sort = request.GET.get("sort") or "default"
    if sort not in analytics.SORT_OPTIONS:
        sort = "default"
    listed = analytics.search(analytics.sort_donations(listed, sort), request.GET.get("q", ""))

    ctx = {
        "admin": request.admin,
        "donations": listed,
        "stats": analytics.stats(donations),
        "top_donors": analytics.merge_top_donors(_top_donors(limit=None)),
        "sort": sort,
        "sort_options": analytics.SORT_OPTIONS,
        "q": request.GET.get("q", ""),
    }
    return render(request, "dashboard/index.html", ctx)


@never_cache
@admin_page_required
def analytics_page(request):
    try:
        params = _analytics_params(request)
    except ValidationError:
        params = {"timeframe": "daily", "daily_range": 30, "date_from": None, "date_to": None}
    points, comparison = _chart(params)
    ctx = {"admin": request.admin, "points": points, "comparison": comparison, **params}
    return render(request, "dashboard/analytics.html", ctx)


@never_cache
@admin_page_required
def events_page(request):
    return render(request, "dashboard/events.html", {"admin": request.admin})
