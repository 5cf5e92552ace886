"""HTTP Basic authentication against the configured admin credentials."""

import base64
import binascii
import hmac

from django.conf import settings
from rest_framework import exceptions
from rest_framework.authentication import BaseAuthentication, get_authorization_header


class AdminPrincipal:
    """Minimal authenticated user object for the admin listing."""

    is_authenticated = True
    is_anonymous = False
    pk = None

    def __init__(self, username: str):
        self.username = username

    def __str__(self):
        return self.username


class AdminBasicAuthentication(BaseAuthentication):
    """Validate ``Authorization: Basic`` against ADMIN_USER / ADMIN_PASS.

    Both parts are compared in constant time. Missing credentials return
    None so the permission check answers 401 with a ``WWW-Authenticate``
    challenge; malformed or wrong credentials raise ``AuthenticationFailed``.
    """

    www_authenticate_realm = "purchases"

    def authenticate(self, request):
        auth = get_authorization_header(request).split()
        if not auth or auth[0].lower() != b"basic":
            return None
        if len(auth) != 2:
            raise exceptions.AuthenticationFailed("Invalid basic header.")

        try:
            decoded = base64.b64decode(auth[1], validate=True).decode("utf-8")
            username, _, password = decoded.partition(":")
        except (binascii.Error, UnicodeDecodeError):
            raise exceptions.AuthenticationFailed("Invalid basic header.")

        expected_user = getattr(settings, "ADMIN_USER", "")
        expected_pass = getattr(settings, "ADMIN_PASS", "")
        if not expected_user or not expected_pass:
            raise exceptions.AuthenticationFailed("Admin credentials are not configured.")

        user_ok = hmac.compare_digest(username.encode("utf-8"), expected_user.encode("utf-8"))
        pass_ok = hmac.compare_digest(password.encode("utf-8"), expected_pass.encode("utf-8"))
        if not (user_ok and pass_ok):
            raise exceptions.AuthenticationFailed("Invalid username/password.")
        return (AdminPrincipal(username), None)

    def authenticate_header(self, request):
        return f'Basic realm="{self.www_authenticate_realm}"'
