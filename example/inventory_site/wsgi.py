"""
WSGI entry point, e.g. ``gunicorn inventory_site.wsgi --workers 2 --threads 3``
run from the example directory.
"""
import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "inventory_site.settings")

application = get_wsgi_application()
