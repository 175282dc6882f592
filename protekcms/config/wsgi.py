"""
WSGI config for the ProtekCMS project.
"""
import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'protekcms.config.settings')

application = get_wsgi_application()
