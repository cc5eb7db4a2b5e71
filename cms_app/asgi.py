"""ASGI config for the category administration backend."""

import os

from channels.routing import ProtocolTypeRouter
from django.core.asgi import get_asgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "cms_app.settings")

application = ProtocolTypeRouter(
    {
        "http": get_asgi_application(),
    }
)
