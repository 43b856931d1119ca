from urllib.parse import parse_qs

from channels.db import database_sync_to_async
from channels.middleware import BaseMiddleware
from django.contrib.auth.models import AnonymousUser

from .accounts import user_for_token


@database_sync_to_async
def get_token_user(token):
    return user_for_token(token) or AnonymousUser()


class TokenAuthMiddleware(BaseMiddleware):
    """
    Puts the bearer-token user in ``scope["user"]`` for WebSocket connections.
    Browsers cannot set headers on a socket, so ``?token=`` is accepted as
    well as an ``Authorization: Bearer`` header.
    """

    async def __call__(self, scope, receive, send):
        scope = dict(scope)
        scope["user"] = await get_token_user(self.token_from_scope(scope))
        return await super().__call__(scope, receive, send)

    @staticmethod
    def token_from_scope(scope):
        query = parse_qs(scope.get("query_string", b"").decode())
        if query.get("token"):
            return query["token"][0]
        for name, value in scope.get("headers", []):
            if name == b"authorization":
                scheme, _, token = value.decode().partition(" ")
                if scheme.lower() == "bearer":
                    return token.strip()
        return None


def TokenAuthMiddlewareStack(inner):
    return TokenAuthMiddleware(inner)
