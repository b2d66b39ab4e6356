import json
from datetime import datetime, timedelta, timezone as dt_timezone

from django.core import mail
from django.test import TestCase, override_settings
from django.urls import reverse
from django.utils import timezone

from dashboard.auth import sign_admin_token
from .models import ContactMessage, Event

SMTP = dict(
    EMAIL_HOST="smtp.example.org",
    EMAIL_HOST_USER="mailer@example.org",
    EMAIL_HOST_PASSWORD="secret",
    DEFAULT_FROM_EMAIL="mailer@example.org",
    ORG_CONTACT_EMAIL="office@example.org",
)


class HomePageTests(TestCase):
    def test_renders_upcoming_events(self):
        Event.objects.create(title="Janmashtami Utsav", date=timezone.now() + timedelta(days=3))
        Event.objects.create(title="Last year's Rath Yatra", date=timezone.now() - timedelta(days=300))
        resp = self.client.get(reverse("website:home"))
        self.assertEqual(resp.status_code, 200)
        self.assertTemplateUsed(resp, "website/home.html")
        self.assertContains(resp, "Janmashtami Utsav")
        self.assertNotContains(resp, "Rath Yatra")


@override_settings(ADMIN_JWT_SECRET="test-admin-jwt-secret")
class EventsApiTests(TestCase):
    def _create(self, payload, admin=True):
        if admin:
            self.client.cookies["admin_token"] = sign_admin_token(1, "admin@trust.org")
        return self.client.post(reverse("website:events_api"), data=json.dumps(payload),
                                content_type="application/json")

    def test_lists_only_upcoming_in_date_order(self):
        now = timezone.now()
        Event.objects.create(title="Later", date=now + timedelta(days=10))
        Event.objects.create(title="Past", date=now - timedelta(days=1))
        Event.objects.create(title="Sooner", date=now + timedelta(days=1))

        resp = self.client.get(reverse("website:events_api"))
        self.assertEqual(resp.status_code, 200)
        self.assertEqual([e["title"] for e in resp.json()], ["Sooner", "Later"])

    def test_create_requires_admin(self):
        resp = self._create({"title": "Kirtan", "dateTime": "2030-01-01T12:30:00.000Z"}, admin=False)
        self.assertEqual(resp.status_code, 401)
        self.assertFalse(Event.objects.exists())

    def test_create_event(self):
        resp = self._create({"title": " Kirtan ", "description": "Evening kirtan", "dateTime": "2030-01-01T12:30:00.000Z"})
        self.assertEqual(resp.status_code, 201)
        data = resp.json()
        self.assertEqual(data["title"], "Kirtan")
        event = Event.objects.get(pk=data["id"])
        self.assertEqual(event.description, "Evening kirtan")
        self.assertEqual(event.date, datetime(2030, 1, 1, 12, 30, tzinfo=dt_timezone.utc))

    def test_create_validates_fields(self):
        self.assertEqual(self._create({"dateTime": "2030-01-01T12:30:00Z"}).status_code, 400)
        self.assertEqual(self._create({"title": "Kirtan"}).status_code, 400)
        bad = self._create({"title": "Kirtan", "dateTime": "next tuesday"})
        self.assertEqual(bad.status_code, 400)
        self.assertEqual(bad.json(), {"error": "Invalid dateTime"})
        self.assertFalse(Event.objects.exists())


class ContactApiTests(TestCase):
    def _post(self, payload):
        return self.client.post(reverse("website:contact_api"), data=json.dumps(payload),
                                content_type="application/json")

    def test_requires_name_email_message(self):
        resp = self._post({"name": "Madhav", "email": "m@example.com"})
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json(), {"error": "Name, email and message are required."})
        self.assertFalse(ContactMessage.objects.exists())

    @override_settings(**SMTP)
    def test_saves_message_and_notifies_office(self):
        resp = self._post({
            "name": "Madhav",
            "email": "madhav@example.com",
            "phone": "9000000000",
            "subject": "Prasadam sponsorship",
            "message": "How can I sponsor Sunday prasadam?",
        })
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json(), {"success": True})

        saved = ContactMessage.objects.get()
        self.assertEqual(saved.subject, "Prasadam sponsorship")

        self.assertEqual(len(mail.outbox), 1)
        sent = mail.outbox[0]
        self.assertEqual(sent.to, ["office@example.org"])
        self.assertEqual(sent.reply_to, ["madhav@example.com"])
        self.assertIn("Prasadam sponsorship", sent.subject)
        self.assertIn("How can I sponsor Sunday prasadam?", sent.body)
        self.assertEqual(sent.alternatives[0][1], "text/html")

    @override_settings(EMAIL_HOST="", EMAIL_HOST_USER="", EMAIL_HOST_PASSWORD="")
    def test_skips_mail_without_smtp_settings(self):
        with self.assertLogs("website.emails", level="WARNING"):
            resp = self._post({"name": "Madhav", "email": "m@example.com", "message": "Hare Krishna"})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(ContactMessage.objects.count(), 1)
        self.assertEqual(len(mail.outbox), 0)
