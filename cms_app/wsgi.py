"""WSGI config for the category administration backend."""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "cms_app.settings")

application = get_wsgi_application()
