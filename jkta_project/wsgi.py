"""
WSGI config for jkta_project project.
"""
import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'jkta_project.settings')

application = get_wsgi_application()
