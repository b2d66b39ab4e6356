from datetime import date, datetime
from zoneinfo import ZoneInfo

from django.test import SimpleTestCase

from donations.models import Donation
from . import analytics

IST = ZoneInfo("Asia/Kolkata")


def _d(amount, when, status=Donation.SUCCESS, payment_id="pay_x", name="Donor", email="d@example.com",
       phone="9000000000", order_id="order_x"):
    return Donation(
        order_id=order_id, payment_id=payment_id, amount=amount, status=status,
        donor_name=name, donor_email=email, donor_phone=phone, created_at=when,
    )


class CompletedTests(SimpleTestCase):
    def test_needs_success_and_payment_id(self):
        when = datetime(2024, 5, 3, 10, tzinfo=IST)
        rows = [
            _d(100, when),
            _d(200, when, status=Donation.PENDING),
            _d(300, when, payment_id=None),
            _d(400, when, payment_id="   "),
        ]
        self.assertEqual([d.amount for d in analytics.completed(rows)], [100])
        self.assertEqual(analytics.stats(rows), {"totalCount": 1, "totalAmount": 100})


class BucketTests(SimpleTestCase):
    today = date(2024, 5, 31)

    def test_daily_prefills_range_with_zero_buckets(self):
        rows = [
            _d(500, datetime(2024, 5, 31, 9, tzinfo=IST)),
            _d(250, datetime(2024, 5, 31, 18, tzinfo=IST)),
            _d(100, datetime(2024, 5, 2, 12, tzinfo=IST)),
            _d(999, datetime(2024, 3, 1, 12, tzinfo=IST)),  # outside the window
        ]
        points = analytics.bucket(rows, "daily", 30, today=self.today)

        self.assertEqual(len(points), 30)
        self.assertEqual(points[0]["key"], "2024-05-02")
        self.assertEqual(points[0]["totalAmount"], 100)
        self.assertEqual(points[-1], {"key": "2024-05-31", "label": "31 May", "totalAmount": 750, "count": 2})
        self.assertEqual(points[1]["totalAmount"], 0)
        self.assertEqual(sum(p["count"] for p in points), 3)

    def test_daily_uses_local_day(self):
        # 20:00 UTC on 30 May is 01:30 IST on 31 May
        late = datetime(2024, 5, 30, 20, tzinfo=ZoneInfo("UTC"))
        points = analytics.bucket([_d(10, late)], "daily", 30, today=self.today)
        self.assertEqual(points[-1]["totalAmount"], 10)

    def test_monthly_keys_sort_chronologically(self):
        rows = [
            _d(100, datetime(2023, 11, 5, tzinfo=IST)),
            _d(200, datetime(2024, 2, 1, tzinfo=IST)),
            _d(300, datetime(2024, 2, 20, tzinfo=IST)),
        ]
        points = analytics.bucket(rows, "monthly", today=self.today)
        self.assertEqual([p["key"] for p in points], ["2023-11", "2024-02"])
        self.assertEqual([p["label"] for p in points], ["Nov 2023", "Feb 2024"])
        self.assertEqual(points[1]["totalAmount"], 500)

    def test_yearly(self):
        rows = [_d(100, datetime(2022, 1, 1, 12, tzinfo=IST)), _d(50, datetime(2024, 7, 1, tzinfo=IST))]
        points = analytics.bucket(rows, "yearly", today=self.today)
        self.assertEqual([(p["key"], p["totalAmount"]) for p in points], [("2022", 100), ("2024", 50)])

    def test_explicit_range_skips_prefill(self):
        rows = [
            _d(100, datetime(2024, 1, 10, tzinfo=IST)),
            _d(200, datetime(2024, 1, 20, tzinfo=IST)),
            _d(300, datetime(2024, 2, 1, tzinfo=IST)),
        ]
        points = analytics.bucket(rows, "daily", 30, date(2024, 1, 1), date(2024, 1, 31), today=self.today)
        self.assertEqual([p["key"] for p in points], ["2024-01-10", "2024-01-20"])

    def test_unknown_timeframe(self):
        with self.assertRaises(ValueError):
            analytics.bucket([], "weekly")


class CompareTests(SimpleTestCase):
    def test_delta_against_previous_window(self):
        today = date(2024, 5, 31)
        rows = [
            _d(300, datetime(2024, 5, 2, 12, tzinfo=IST)),   # first day of current window
            _d(200, datetime(2024, 5, 1, 12, tzinfo=IST)),   # last day of previous window
            _d(999, datetime(2024, 3, 1, 12, tzinfo=IST)),   # older than both
        ]
        result = analytics.compare_30(rows, today)
        self.assertEqual(result["current"], 300)
        self.assertEqual(result["previous"], 200)
        self.assertAlmostEqual(result["delta"], 50.0)

    def test_no_previous_gives_zero_delta(self):
        result = analytics.compare_30([_d(100, datetime(2024, 5, 30, tzinfo=IST))], date(2024, 5, 31))
        self.assertEqual(result, {"current": 100, "previous": 0, "delta": 0})


class ListingTests(SimpleTestCase):
    def setUp(self):
        self.rows = [
            _d(500, datetime(2024, 5, 3, 14, 7, 9, tzinfo=IST), name="Bhakti", email="b@x.org", order_id="order_B"),
            _d(100, datetime(2023, 1, 1, 9, tzinfo=IST), name="asha", email="a@x.org", phone="9811111111"),
            _d(900, datetime(2024, 6, 1, 9, tzinfo=IST), name="Chaitanya", email="c@x.org", payment_id="pay_ZZ"),
        ]

    def test_search_fields(self):
        self.assertEqual([d.donor_name for d in analytics.search(self.rows, "BHAK")], ["Bhakti"])
        self.assertEqual([d.donor_name for d in analytics.search(self.rows, "98111")], ["asha"])
        self.assertEqual([d.donor_name for d in analytics.search(self.rows, "pay_zz")], ["Chaitanya"])
        self.assertEqual([d.donor_name for d in analytics.search(self.rows, "2023")], ["asha"])
        self.assertEqual([d.donor_name for d in analytics.search(self.rows, "3/5/2024, 2:07")], ["Bhakti"])
        self.assertEqual(len(analytics.search(self.rows, "  ")), 3)

    def test_sort_options(self):
        names = lambda rows: [d.donor_name for d in rows]
        self.assertEqual(names(analytics.sort_donations(self.rows, "name-asc")), ["asha", "Bhakti", "Chaitanya"])
        self.assertEqual(names(analytics.sort_donations(self.rows, "name-desc")), ["Chaitanya", "Bhakti", "asha"])
        self.assertEqual(names(analytics.sort_donations(self.rows, "amount-asc")), ["asha", "Bhakti", "Chaitanya"])
        self.assertEqual(names(analytics.sort_donations(self.rows, "amount-desc")), ["Chaitanya", "Bhakti", "asha"])
        self.assertEqual(names(analytics.sort_donations(self.rows)), ["Chaitanya", "Bhakti", "asha"])

    def test_filter_amount(self):
        self.assertEqual([d.amount for d in analytics.filter_amount(self.rows, 200, None)], [500, 900])
        self.assertEqual([d.amount for d in analytics.filter_amount(self.rows, None, 500)], [500, 100])

    def test_merge_top_donors(self):
        rows = [
            {"email": "a@x.org", "name": "Asha", "totalAmount": 300},
            {"email": "a@x.org", "name": "Asha D", "totalAmount": 400},
            {"email": "b@x.org", "name": "Bala", "totalAmount": 500},
            {"email": "", "name": "Cash", "totalAmount": 50},
            {"email": "d@x.org", "name": "Dev", "totalAmount": 100},
        ]
        merged = analytics.merge_top_donors(rows)
        self.assertEqual([(r["email"], r["totalAmount"]) for r in merged],
                         [("a@x.org", 700), ("b@x.org", 500), ("d@x.org", 100)])
        self.assertEqual(merged[0]["name"], "Asha")


class CsvTests(SimpleTestCase):
    def test_header_and_rows(self):
        points = [
            {"key": "2024-01", "label": "Jan 2024", "totalAmount": 1500, "count": 3},
            {"key": "2024-02", "label": "Feb 2024", "totalAmount": 0, "count": 0},
        ]
        self.assertEqual(
            analytics.to_csv(points),
            "Date,Total Amount,Donation Count\nJan 2024,1500,3\nFeb 2024,0,0\n",
        )
