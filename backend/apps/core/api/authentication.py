import hmac

from django.conf import settings
from django.contrib.auth.models import AnonymousUser
from rest_framework import authentication, exceptions


class ApiKeyAuthentication(authentication.BaseAuthentication):
    """Accept requests whose ``X-API-Key`` header is one of ``BATCHCOST_API_KEYS``."""

    header_name = "HTTP_X_API_KEY"

    def authenticate(self, request):
        api_key = request.META.get(self.header_name, "").strip()
        if not api_key:
            return None

        if not any(hmac.compare_digest(api_key, key) for key in settings.BATCHCOST_API_KEYS):
            raise exceptions.AuthenticationFailed("Invalid API key.")

        return (AnonymousUser(), api_key)

    def authenticate_header(self, request):
        return "X-API-Key"
