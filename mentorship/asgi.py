import os
from django.core.asgi import get_asgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'mentorship.settings')

# Django must be set up before the consumers import models
django_app = get_asgi_application()

from channels.routing import ProtocolTypeRouter, URLRouter  # noqa: E402
from bridge.middleware import TokenAuthMiddlewareStack  # noqa: E402
import bridge.routing  # noqa: E402

application = ProtocolTypeRouter({
    "http": django_app,
    "websocket": TokenAuthMiddlewareStack(
        URLRouter(
            bridge.routing.websocket_urlpatterns
        )
    ),
})
