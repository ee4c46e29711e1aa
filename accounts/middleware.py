from django.contrib.auth import login
from django.http import JsonResponse

from accounts.models import User

import logging

logger = logging.getLogger(__name__)


# Header-based login stands in for a real auth provider
class MockLoginUserMiddleware:
    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        if request.path.startswith("/api"):
            username = request.headers.get("X-User-NAME")
            if username:
                logger.info("Mock login for user: %s", username)
                try:
                    user = User.objects.get(username=username)
                    login(request, user)
                except User.DoesNotExist:
                    return JsonResponse(
                        {"error": "User not found or invalid credentials."}, status=401
                    )
        response = self.get_response(request)
        return response
