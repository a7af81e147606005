"""
WSGI config for ProMo-G.

Administrator provisioning lives in ``manage.py ensure_admin``.
"""
import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "core.settings")

application = get_wsgi_application()
