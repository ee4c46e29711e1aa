from rest_framework.authentication import BaseAuthentication


class MiddlewareUserAuthentication(BaseAuthentication):
    """
    Accept the user MockLoginUserMiddleware logged in. Unlike
    SessionAuthentication this does not enforce CSRF, since callers are API
    clients identified by the X-User-NAME header.
    """

    def authenticate(self, request):
        user = getattr(request._request, "user", None)
        if user is None or not user.is_active:
            return None
        return user, None
