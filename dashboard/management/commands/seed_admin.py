from django.conf import settings
from django.core.management.base import BaseCommand, CommandError

from dashboard.models import AdminUser


class Command(BaseCommand):
    help = "Create the dashboard admin user (existing users are left alone unless --reset)"

    def add_arguments(self, parser):
        parser.add_argument("--email", default=None, help="Defaults to INIT_ADMIN_EMAIL")
        parser.add_argument("--password", default=None, help="Defaults to INIT_ADMIN_PASSWORD")
        parser.add_argument("--reset", action="store_true", help="Overwrite the password of an existing admin")

    def handle(self, *args, **opts):
        email = (opts["email"] or settings.INIT_ADMIN_EMAIL or "").strip().lower()
        password = opts["password"] or settings.INIT_ADMIN_PASSWORD
        if not email:
            raise CommandError("An admin email is required (--email or INIT_ADMIN_EMAIL)")
        if not password:
            raise CommandError("An admin password is required (--password or INIT_ADMIN_PASSWORD)")

        admin = AdminUser.objects.filter(email__iexact=email).first()
        if admin is None:
            admin = AdminUser(email=email)
            admin.set_password(password)
            admin.save()
            self.stdout.write(self.style.SUCCESS(f"Admin created: {email}"))
        elif opts["reset"]:
            admin.set_password(password)
            admin.save(update_fields=["password"])
            self.stdout.write(self.style.SUCCESS(f"Admin password reset: {email}"))
        else:
            self.stdout.write(self.style.WARNING(f"Admin already exists: {email}"))
