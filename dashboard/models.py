from django.contrib.auth.hashers import check_password, make_password
from django.db import models


class AdminUser(models.Model):
    email = models.EmailField(unique=True)
    password = models.CharField(max_length=256)  # hashed
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self) -> str:
        return self.email

    def set_password(self, raw_password: str) -> None:
        self.password = make_password(raw_password)

    def check_password(self, raw_password: str) -> bool:
        return check_password(raw_password, self.password)
