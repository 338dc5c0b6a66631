from rest_framework.permissions import BasePermission


class RequiresApiKey(BasePermission):
    message = "Send a valid X-API-Key header to use the costing API."

    def has_permission(self, request, view):
        # Preflight requests carry no custom headers.
        return request.method == "OPTIONS" or request.auth is not None
