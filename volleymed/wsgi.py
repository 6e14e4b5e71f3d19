"""
WSGI config for the volleymed project.

It exposes the WSGI callable as a module-level variable named ``application``.
WebSocket change feeds are only served through :mod:`volleymed.asgi`.
"""
import os

from django.core.wsgi import get_wsgi_application  # type: ignore

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'volleymed.settings')

application = get_wsgi_application()
