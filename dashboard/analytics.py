"""Listing and chart helpers for the admin dashboard.

Everything here works on already-fetched :class:`donations.models.Donation`
rows. Dates are bucketed in the site's local time zone so a donation made
just after midnight IST lands on the right day.
"""

import csv
import io
from datetime import date, timedelta

from django.utils import timezone

from donations.models import Donation

TIMEFRAMES = ("daily", "monthly", "yearly")
DAILY_RANGES = (30, 60, 90)
SORT_OPTIONS = ("default", "name-asc", "name-desc", "amount-asc", "amount-desc")


def _local_date(dt) -> date:
    return timezone.localtime(dt).date()


def _display_datetime(dt) -> str:
    # Matches the en-IN locale string shown in the dashboard, e.g. "5/3/2024, 2:07:09 pm"
    local = timezone.localtime(dt)
    hour = local.hour % 12 or 12
    meridiem = "am" if local.hour < 12 else "pm"
    return f"{local.day}/{local.month}/{local.year}, {hour}:{local.minute:02d}:{local.second:02d} {meridiem}"


def completed(donations):
    """Successful donations that actually carry a gateway payment id."""
    return [
        d for d in donations
        if d.status == Donation.SUCCESS and (d.payment_id or "").strip()
    ]


def filter_amount(donations, min_amount=None, max_amount=None):
    result = list(donations)
    if min_amount is not None:
        result = [d for d in result if d.amount >= min_amount]
    if max_amount is not None:
        result = [d for d in result if d.amount <= max_amount]
    return result


def search(donations, query: str):
    q = (query or "").strip().lower()
    if not q:
        return list(donations)

    def matches(d) -> bool:
        fields = [
            d.donor_name or "",
            d.donor_email or "",
            d.donor_phone or "",
            d.order_id or "",
            d.payment_id or "",
            str(timezone.localtime(d.created_at).year),
            _display_datetime(d.created_at),
        ]
        return any(q in f.lower() for f in fields)

    return [d for d in donations if matches(d)]


def sort_donations(donations, option: str = "default"):
    if option == "name-asc":
        return sorted(donations, key=lambda d: (d.donor_name or "").lower())
    if option == "name-desc":
        return sorted(donations, key=lambda d: (d.donor_name or "").lower(), reverse=True)
    if option == "amount-asc":
        return sorted(donations, key=lambda d: d.amount)
    if option == "amount-desc":
        return sorted(donations, key=lambda d: d.amount, reverse=True)
    return sorted(donations, key=lambda d: d.created_at, reverse=True)


def stats(donations) -> dict:
    done = completed(donations)
    return {"totalCount": len(done), "totalAmount": sum(d.amount for d in done)}


def merge_top_donors(rows, limit: int = 3):
    """Merge donor rows sharing an email (or name when email is blank) and
    keep the biggest ``limit`` by total amount."""
    merged = {}
    for row in rows:
        key = row.get("email") or row.get("name") or "unknown"
        existing = merged.get(key)
        if existing:
            existing["totalAmount"] += row.get("totalAmount") or 0
            if not existing.get("name") and row.get("name"):
                existing["name"] = row["name"]
        else:
            merged[key] = dict(row)
    return sorted(merged.values(), key=lambda r: r["totalAmount"], reverse=True)[:limit]


def _key_and_label(day: date, timeframe: str) -> tuple[str, str]:
    if timeframe == "daily":
        return day.strftime("%Y-%m-%d"), day.strftime("%d %b")
    if timeframe == "monthly":
        return day.strftime("%Y-%m"), day.strftime("%b %Y")
    return str(day.year), str(day.year)


def filter_dates(donations, date_from: date | None, date_to: date | None):
    """Completed donations within ``[date_from, date_to]``; both bounds are
    needed for the range to apply."""
    done = completed(donations)
    if not date_from or not date_to:
        return done
    return [d for d in done if date_from <= _local_date(d.created_at) <= date_to]


def bucket(donations, timeframe: str = "daily", daily_range: int = 30,
           date_from: date | None = None, date_to: date | None = None,
           today: date | None = None):
    """Aggregate completed donations into chart points.

    Without an explicit date range the daily view covers the last
    ``daily_range`` days, pre-filled with empty buckets so gaps show as zero.
    Points come back sorted by key.
    """
    if timeframe not in TIMEFRAMES:
        raise ValueError(f"Unknown timeframe {timeframe!r}")
    today = today or timezone.localdate()
    source = filter_dates(donations, date_from, date_to)
    points = {}

    if not date_from and timeframe == "daily":
        start = today - timedelta(days=daily_range - 1)
        for i in range(daily_range):
            day = start + timedelta(days=i)
            key, label = _key_and_label(day, timeframe)
            points[key] = {"key": key, "label": label, "totalAmount": 0, "count": 0}
        source = [d for d in source if start <= _local_date(d.created_at) <= today]

    for d in source:
        key, label = _key_and_label(_local_date(d.created_at), timeframe)
        point = points.setdefault(key, {"key": key, "label": label, "totalAmount": 0, "count": 0})
        point["totalAmount"] += d.amount
        point["count"] += 1

    return sorted(points.values(), key=lambda p: p["key"])


def compare_30(donations, today: date | None = None) -> dict:
    """Completed total of the last 30 days against the 30 days before."""
    today = today or timezone.localdate()
    curr_start = today - timedelta(days=29)
    prev_start = curr_start - timedelta(days=30)
    prev_end = curr_start - timedelta(days=1)
    done = completed(donations)

    def total(start: date, end: date) -> int:
        return sum(d.amount for d in done if start <= _local_date(d.created_at) <= end)

    current = total(curr_start, today)
    previous = total(prev_start, prev_end)
    delta = ((current - previous) / previous) * 100 if previous else 0
    return {"current": current, "previous": previous, "delta": delta}


def to_csv(points) -> str:
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(["Date", "Total Amount", "Donation Count"])
    for p in points:
        writer.writerow([p["label"], p["totalAmount"], p["count"]])
    return buf.getvalue()
