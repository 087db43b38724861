"""
Accounts app models.

Defines the custom ``User`` model that extends Django's ``AbstractUser``
with a fixed three-way role (citizen / police / admin) and the
verification flag that police accounts need before they can act as
police.
"""

from django.contrib.auth.models import AbstractUser
from django.db import models


class UserRole(models.TextChoices):
    CITIZEN = "citizen", "Citizen"
    POLICE = "police", "Police"
    ADMIN = "admin", "Admin"


class User(AbstractUser):
    """
    Custom user model for the crime reporting system.

    Citizens register themselves and are verified immediately.  Police
    accounts register with a badge number and department and wait for an
    admin to flip ``is_verified`` before police-only operations open up.
    Login is supported via username *or* email together with the password.
    """

    email = models.EmailField(
        unique=True,
        verbose_name="Email Address",
    )
    role = models.CharField(
        max_length=10,
        choices=UserRole.choices,
        default=UserRole.CITIZEN,
        db_index=True,
        verbose_name="Role",
    )
    is_verified = models.BooleanField(
        default=False,
        verbose_name="Verified",
        help_text="Police accounts must be verified by an admin.",
    )
    phone = models.CharField(
        max_length=20,
        blank=True,
        default="",
        verbose_name="Phone",
    )

    # ── Police-only profile ──────────────────────────────────────────
    badge_number = models.CharField(
        max_length=50,
        blank=True,
        default="",
        verbose_name="Badge Number",
    )
    department = models.CharField(
        max_length=100,
        blank=True,
        default="",
        verbose_name="Department",
    )

    REQUIRED_FIELDS = ["email", "first_name", "last_name"]

    class Meta:
        verbose_name = "User"
        verbose_name_plural = "Users"
        ordering = ["-date_joined"]

    def __str__(self):
        return f"{self.username} ({self.get_full_name()}) - {self.role}"

    @property
    def is_police(self) -> bool:
        return self.role == UserRole.POLICE

    @property
    def is_admin_role(self) -> bool:
        return self.role == UserRole.ADMIN or self.is_superuser
