"""
Run the bank sync scheduler in the foreground.

Usage:
    python manage.py run_sync_scheduler
    python manage.py run_sync_scheduler --once
    python manage.py run_sync_scheduler --once --job weekly-full-sync
"""

import time

from django.core.management.base import BaseCommand, CommandError

from apps.banking.exceptions import SyncFailedError, SyncJobNotFoundError
from apps.banking.services import get_scheduler


class Command(BaseCommand):
    help = 'Run the scheduled GoCardless sync jobs'

    def add_arguments(self, parser):
        parser.add_argument(
            '--once',
            action='store_true',
            help='Run a single sync immediately and exit',
        )
        parser.add_argument(
            '--job',
            help='Job to run with --once (default: ad-hoc manual sync)',
        )

    def handle(self, *args, **options):
        scheduler = get_scheduler()

        if options['once']:
            try:
                result = scheduler.trigger_manual_sync(options.get('job'))
            except (SyncFailedError, SyncJobNotFoundError) as e:
                raise CommandError(str(e))

            self.stdout.write(self.style.SUCCESS(
                f"Synced {result['accounts_processed']} account(s): "
                f"{result['created']} created, {result['updated']} updated"
            ))
            for error in result['errors']:
                self.stdout.write(self.style.WARNING(f"  {error}"))
            return

        scheduler.start()
        for job in scheduler.get_all_jobs():
            state = f"next run {job['next_run']:%Y-%m-%d %H:%M}" if job['next_run'] else 'paused'
            self.stdout.write(f"  {job['id']} ({job['schedule']}): {state}")
        self.stdout.write(self.style.SUCCESS('Sync scheduler running. Press Ctrl+C to stop.'))

        try:
            while True:
                time.sleep(60)
        except KeyboardInterrupt:
            self.stdout.write('Stopping sync scheduler...')
        finally:
            scheduler.shutdown()
