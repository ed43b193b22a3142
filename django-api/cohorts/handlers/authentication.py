from rest_framework.authentication import TokenAuthentication


class BearerTokenAuthentication(TokenAuthentication):
    """Accept ``Authorization: Bearer <token>`` as the editor sends it."""

    keyword = "Bearer"
