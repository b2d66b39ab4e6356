import json
import time
from io import StringIO

import jwt
from django.core.management import call_command
from django.test import TestCase, override_settings
from django.urls import reverse

from donations.models import Donation
from .auth import sign_admin_token, verify_admin_token
from .models import AdminUser

JWT_SECRET = "test-admin-jwt-secret"


def _make_admin(email="admin@trust.org", password="Admin@12345"):
    admin = AdminUser(email=email)
    admin.set_password(password)
    admin.save()
    return admin


@override_settings(ADMIN_JWT_SECRET=JWT_SECRET)
class AdminTokenTests(TestCase):
    def test_round_trip_payload(self):
        token = sign_admin_token(7, "admin@trust.org")
        payload = verify_admin_token(token)
        self.assertEqual(payload["adminId"], "7")
        self.assertEqual(payload["email"], "admin@trust.org")
        self.assertEqual(payload["exp"] - payload["iat"], 60 * 60 * 24)

    def test_expired_token_is_rejected(self):
        now = int(time.time())
        token = jwt.encode({"adminId": "1", "email": "a@b.c", "iat": now - 7200, "exp": now - 3600}, JWT_SECRET, algorithm="HS256")
        self.assertIsNone(verify_admin_token(token))

    def test_wrong_key_and_garbage_are_rejected(self):
        forged = jwt.encode({"adminId": "1", "email": "a@b.c", "exp": int(time.time()) + 60}, "other", algorithm="HS256")
        self.assertIsNone(verify_admin_token(forged))
        self.assertIsNone(verify_admin_token("not-a-jwt"))
        self.assertIsNone(verify_admin_token(None))


@override_settings(ADMIN_JWT_SECRET=JWT_SECRET, ADMIN_COOKIE_SECURE=True)
class AdminLoginTests(TestCase):
    def setUp(self):
        self.admin = _make_admin()

    def _login(self, payload):
        return self.client.post(reverse("dashboard:login_api"), data=json.dumps(payload), content_type="application/json")

    def test_login_sets_http_only_cookie(self):
        resp = self._login({"email": "admin@trust.org", "password": "Admin@12345"})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json(), {"ok": True})
        self.assertEqual(resp["Cache-Control"], "no-store")

        cookie = resp.cookies["admin_token"]
        self.assertTrue(cookie["httponly"])
        self.assertTrue(cookie["secure"])
        self.assertEqual(cookie["samesite"], "Lax")
        self.assertEqual(cookie["path"], "/")
        self.assertEqual(int(cookie["max-age"]), 86400)
        payload = verify_admin_token(cookie.value)
        self.assertEqual(payload["adminId"], str(self.admin.pk))
        self.assertEqual(payload["email"], "admin@trust.org")

    def test_wrong_password_and_unknown_email_look_the_same(self):
        wrong = self._login({"email": "admin@trust.org", "password": "nope"})
        unknown = self._login({"email": "ghost@trust.org", "password": "nope"})
        self.assertEqual(wrong.status_code, 401)
        self.assertEqual(unknown.status_code, 401)
        self.assertEqual(wrong.json(), unknown.json())
        self.assertNotIn("admin_token", wrong.cookies)

    def test_missing_fields(self):
        resp = self._login({"email": "admin@trust.org"})
        self.assertEqual(resp.status_code, 400)

    def test_password_is_stored_hashed(self):
        self.assertNotEqual(self.admin.password, "Admin@12345")
        self.assertTrue(self.admin.check_password("Admin@12345"))

    def test_logout_clears_cookie(self):
        self._login({"email": "admin@trust.org", "password": "Admin@12345"})
        resp = self.client.post(reverse("dashboard:logout_api"))
        self.assertEqual(resp.status_code, 200)
        self.assertTrue(resp.json()["ok"])
        self.assertEqual(resp.cookies["admin_token"].value, "")
        self.assertEqual(int(resp.cookies["admin_token"]["max-age"]), 0)

    @override_settings(ADMIN_JWT_SECRET="")
    def test_missing_signing_secret_is_server_error(self):
        with self.assertLogs("dashboard.views", level="ERROR"):
            resp = self._login({"email": "admin@trust.org", "password": "Admin@12345"})
        self.assertEqual(resp.status_code, 500)


@override_settings(ADMIN_JWT_SECRET=JWT_SECRET)
class AdminDonationsApiTests(TestCase):
    def setUp(self):
        self.admin = _make_admin()

        def donation(order_id, amount, status, email, name, payment_id=None):
            return Donation.objects.create(
                order_id=order_id, amount=amount, status=status, payment_id=payment_id,
                donor_name=name, donor_email=email, donor_phone="9000000000",
            )

        donation("order_1", 500, Donation.SUCCESS, "a@example.com", "Asha", "pay_1")
        donation("order_2", 1500, Donation.SUCCESS, "a@example.com", "Asha", "pay_2")
        donation("order_3", 800, Donation.SUCCESS, "b@example.com", "Bala", "pay_3")
        donation("order_4", 9000, Donation.FAILED, "c@example.com", "Chandra", "pay_4")
        donation("order_5", 100, Donation.PENDING, "d@example.com", "Deva")

    def _auth(self, token=None):
        self.client.cookies["admin_token"] = token or sign_admin_token(self.admin.pk, self.admin.email)

    def test_requires_cookie(self):
        resp = self.client.get(reverse("dashboard:donations_api"))
        self.assertEqual(resp.status_code, 401)
        self.assertEqual(resp.json(), {"error": "Unauthorized"})

    def test_rejects_expired_and_forged_tokens(self):
        now = int(time.time())
        expired = jwt.encode({"adminId": "1", "email": "x", "iat": now - 100, "exp": now - 10}, JWT_SECRET, algorithm="HS256")
        forged = jwt.encode({"adminId": "1", "email": "x", "exp": now + 100}, "wrong", algorithm="HS256")
        for token in (expired, forged, "garbage"):
            self._auth(token)
            self.assertEqual(self.client.get(reverse("dashboard:donations_api")).status_code, 401)

    def test_lists_donations_and_top_donors(self):
        self._auth()
        resp = self.client.get(reverse("dashboard:donations_api"))
        self.assertEqual(resp.status_code, 200)
        data = resp.json()
        self.assertEqual(len(data["donations"]), 5)
        self.assertEqual(set(data["donations"][0]), {
            "id", "orderId", "paymentId", "signature", "amount", "currency", "donorName",
            "donorEmail", "donorPhone", "status", "createdAt", "updatedAt",
        })
        self.assertEqual(data["topDonors"], [
            {"email": "a@example.com", "name": "Asha", "totalAmount": 2000},
            {"email": "b@example.com", "name": "Bala", "totalAmount": 800},
        ])

    def test_amount_range_filter_in_rupees(self):
        self._auth()
        resp = self.client.get(reverse("dashboard:donations_api"), {"minAmount": "500", "maxAmount": "1500"})
        orders = sorted(d["orderId"] for d in resp.json()["donations"])
        self.assertEqual(orders, ["order_1", "order_2", "order_3"])

    def test_non_finite_amount_filters_are_ignored(self):
        self._auth()
        for params in ({"minAmount": "nan"}, {"maxAmount": "inf"}, {"minAmount": "-Infinity"}):
            resp = self.client.get(reverse("dashboard:donations_api"), params)
            self.assertEqual(resp.status_code, 200)
            self.assertEqual(len(resp.json()["donations"]), 5)

    def test_analytics_endpoint(self):
        self._auth()
        resp = self.client.get(reverse("dashboard:analytics_api"), {"timeframe": "yearly"})
        self.assertEqual(resp.status_code, 200)
        points = resp.json()["points"]
        self.assertEqual(len(points), 1)
        self.assertEqual(points[0]["totalAmount"], 2800)
        self.assertEqual(points[0]["count"], 3)
        self.assertIsNone(resp.json()["comparison"])

    def test_analytics_daily_has_comparison(self):
        self._auth()
        data = self.client.get(reverse("dashboard:analytics_api")).json()
        self.assertEqual(len(data["points"]), 30)
        self.assertEqual(data["comparison"]["current"], 2800)
        self.assertEqual(data["comparison"]["previous"], 0)

    def test_analytics_rejects_bad_params(self):
        self._auth()
        self.assertEqual(self.client.get(reverse("dashboard:analytics_api"), {"timeframe": "hourly"}).status_code, 400)
        self.assertEqual(self.client.get(reverse("dashboard:analytics_api"), {"range": "7"}).status_code, 400)
        self.assertEqual(self.client.get(reverse("dashboard:analytics_api"), {"from": "yesterday"}).status_code, 400)

    def test_analytics_csv(self):
        self._auth()
        resp = self.client.get(reverse("dashboard:analytics_csv"), {"timeframe": "yearly"})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp["Content-Type"], "text/csv")
        lines = resp.content.decode().strip().split("\n")
        self.assertEqual(lines[0], "Date,Total Amount,Donation Count")
        self.assertTrue(lines[1].endswith(",2800,3"))

    def test_analytics_csv_requires_admin(self):
        self.assertEqual(self.client.get(reverse("dashboard:analytics_csv")).status_code, 401)


@override_settings(ADMIN_JWT_SECRET=JWT_SECRET)
class AdminPagesTests(TestCase):
    def setUp(self):
        self.admin = _make_admin()

    def test_pages_redirect_to_login_without_session(self):
        for name in ("dashboard:home", "dashboard:analytics", "dashboard:events"):
            resp = self.client.get(reverse(name))
            self.assertRedirects(resp, "/admin/login", fetch_redirect_response=False)

    def test_pages_render_with_session(self):
        self.client.cookies["admin_token"] = sign_admin_token(self.admin.pk, self.admin.email)
        for name in ("dashboard:home", "dashboard:analytics", "dashboard:events"):
            resp = self.client.get(reverse(name))
            self.assertEqual(resp.status_code, 200)
            self.assertContains(resp, "admin@trust.org")

    def test_top_donors_merged_across_name_spellings(self):
        for i in range(5):
            Donation.objects.create(
                order_id=f"order_big{i}", payment_id=f"pay_big{i}", amount=1000, status=Donation.SUCCESS,
                donor_name=f"Donor {i}", donor_email=f"donor{i}@example.com", donor_phone="1",
            )
        for i, name in enumerate(("Gopal", "Gopal Das")):
            Donation.objects.create(
                order_id=f"order_gopal{i}", payment_id=f"pay_gopal{i}", amount=600, status=Donation.SUCCESS,
                donor_name=name, donor_email="gopal@example.com", donor_phone="1",
            )

        self.client.cookies["admin_token"] = sign_admin_token(self.admin.pk, self.admin.email)
        resp = self.client.get(reverse("dashboard:home"))
        top = resp.context["top_donors"]
        self.assertEqual(len(top), 3)
        self.assertEqual((top[0]["email"], top[0]["totalAmount"]), ("gopal@example.com", 1200))

    def test_login_page_redirects_when_signed_in(self):
        self.assertEqual(self.client.get(reverse("dashboard:login")).status_code, 200)
        self.client.cookies["admin_token"] = sign_admin_token(self.admin.pk, self.admin.email)
        resp = self.client.get(reverse("dashboard:login"))
        self.assertRedirects(resp, reverse("dashboard:home"), fetch_redirect_response=False)


class SeedAdminCommandTests(TestCase):
    def test_creates_admin_once(self):
        out = StringIO()
        call_command("seed_admin", "--email", "Admin@Trust.org", "--password", "pw-1", stdout=out)
        admin = AdminUser.objects.get()
        self.assertEqual(admin.email, "admin@trust.org")
        self.assertTrue(admin.check_password("pw-1"))

        call_command("seed_admin", "--email", "admin@trust.org", "--password", "pw-2", stdout=out)
        admin.refresh_from_db()
        self.assertTrue(admin.check_password("pw-1"))
        self.assertIn("Admin already exists", out.getvalue())

    def test_reset_overwrites_password(self):
        _make_admin(password="old")
        call_command("seed_admin", "--email", "admin@trust.org", "--password", "new", "--reset", stdout=StringIO())
        self.assertTrue(AdminUser.objects.get().check_password("new"))

    @override_settings(INIT_ADMIN_PASSWORD="")
    def test_requires_password(self):
        from django.core.management.base import CommandError
        with self.assertRaises(CommandError):
            call_command("seed_admin", stdout=StringIO())
