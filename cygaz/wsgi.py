"""
WSGI config for cygaz.

Loading the application also starts the background refresh scheduler, which
fills the price cache immediately and then every CYGAZ_REFRESH_INTERVAL
seconds.
"""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'cygaz.settings')

application = get_wsgi_application()

from django.conf import settings  # noqa: E402

if settings.CYGAZ_SCHEDULER_ENABLED:
    from prices.scheduler import start_scheduler  # noqa: E402
    from prices.services import get_price_service  # noqa: E402

    start_scheduler(get_price_service(), settings.CYGAZ_REFRESH_INTERVAL)
