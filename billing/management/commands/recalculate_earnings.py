from django.core.management.base import BaseCommand, CommandError
from rest_framework.exceptions import NotFound

from billing.services.ledger import RECALCULABLE_SOURCES, recalculate


class Command(BaseCommand):
    help = "Backfill missing doctor earnings for existing billable events."

    def add_arguments(self, parser):
        parser.add_argument('--doctor', type=int, help='only this doctor id')
        parser.add_argument(
            '--source', action='append', choices=RECALCULABLE_SOURCES, dest='sources',
            help='event source to scan (repeatable, default: service)',
        )
        parser.add_argument('--all-sources', action='store_true', help='scan every event source')

    def handle(self, *args, **options):
        if options['all_sources']:
            sources = RECALCULABLE_SOURCES
        else:
            sources = options['sources'] or ('service',)
        try:
            result = recalculate(options['doctor'], sources=sources)
        except NotFound as exc:
            raise CommandError(str(exc.detail))
        self.stdout.write(self.style.SUCCESS(
            f"Processed {result['processed']} events, created {result['created']} earnings"
        ))
