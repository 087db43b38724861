"""
Login with either the username or the email address.

``LoginSerializer`` calls ``authenticate(identifier=..., password=...)``;
``ModelBackend`` stays registered after this backend for the Django admin.
"""

from __future__ import annotations

from django.contrib.auth import get_user_model
from django.contrib.auth.backends import ModelBackend
from django.db.models import Q


class UsernameOrEmailBackend(ModelBackend):

    def authenticate(self, request, identifier=None, password=None, **kwargs):
        if not identifier or password is None:
            return None

        User = get_user_model()
        identifier = identifier.strip()
        matches = list(
            User.objects.filter(Q(username=identifier) | Q(email__iexact=identifier))[:2]
        )
        if len(matches) != 1:
            # Hash anyway so unknown identifiers take as long as wrong passwords.
            User().set_password(password)
            return None

        user = matches[0]
        if user.check_password(password) and self.user_can_authenticate(user):
            return user
        return None
