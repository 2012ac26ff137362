"""
ASGI config for the hmsync project.

HTTP only; the billing API has no WebSocket routes.
"""
import os

from django.core.asgi import get_asgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "hmsync.settings")

application = get_asgi_application()
