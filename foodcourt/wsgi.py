"""
WSGI config for foodcourt project.
"""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'foodcourt.settings')

application = get_wsgi_application()
