from rest_framework_simplejwt.authentication import JWTAuthentication
from rest_framework.exceptions import AuthenticationFailed
from rest_framework_simplejwt.exceptions import InvalidToken, TokenError
from django.conf import settings


class CookieJWTAuthentication(JWTAuthentication):
    """
    Accepts a JWT from the Authorization header or, failing that, from the
    access-token cookie set by the site's login flow.
    """

    def authenticate(self, request):
        header = self.get_header(request)
        raw_token = self.get_raw_token(header) if header is not None else None

        if raw_token is None:
            cookie_name = getattr(settings, "JWT_COOKIE_NAME", "access_token")
            raw_token = request.COOKIES.get(cookie_name)

        if raw_token is None:
            return None

        try:
            validated_token = self.get_validated_token(raw_token)
        except (InvalidToken, TokenError, AuthenticationFailed):
            # Ignore invalid/expired token for public endpoints
            return None
        user = self.get_user(validated_token)
        return user, validated_token
