from django.utils import timezone
from rest_framework.authentication import BaseAuthentication, get_authorization_header
from rest_framework.exceptions import AuthenticationFailed

from accounts.models import AccessToken


class BearerTokenAuthentication(BaseAuthentication):
    """
    Bearer token authentication using the Authorization header.

    Clients send ``Authorization: Bearer <id>|<secret>`` with the token issued
    by the login endpoint.
    """

    keyword = 'Bearer'

    def authenticate(self, request):
        auth = get_authorization_header(request).split()

        if not auth or auth[0].lower() != self.keyword.lower().encode():
            return None

        if len(auth) != 2:
            raise AuthenticationFailed('Invalid token header')

        try:
            plaintext = auth[1].decode()
        except UnicodeError:
            raise AuthenticationFailed('Invalid token header')

        token = AccessToken.objects.find(plaintext)
        if token is None:
            raise AuthenticationFailed('Invalid or revoked token')

        if not token.user.is_active:
            raise AuthenticationFailed('User inactive or deleted')

        AccessToken.objects.filter(pk=token.pk).update(last_used_at=timezone.now())

        return (token.user, token)

    def authenticate_header(self, request):
        # Makes DRF answer 401 instead of 403 for anonymous requests
        return self.keyword
