import logging
import sys

from django.apps import AppConfig
from django.conf import settings

logger = logging.getLogger(__name__)

# Commands that must never start background sync jobs
SKIP_SCHEDULER_COMMANDS = {
    'migrate',
    'makemigrations',
    'collectstatic',
    'seed_reference_data',
    'run_sync_scheduler',
    'shell',
    'test',
}


class BankingConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'apps.banking'
    verbose_name = 'Bank sync'

    def ready(self):
        if not settings.SYNC_SCHEDULER_ENABLED:
            return
        if len(sys.argv) > 1 and sys.argv[1] in SKIP_SCHEDULER_COMMANDS:
            return

        from .services.sync_scheduler import get_scheduler

        get_scheduler().start()
        logger.info("Bank sync scheduler started (timezone %s)", settings.SYNC_SCHEDULER_TIMEZONE)
