import logging

from django.core.management.base import BaseCommand, CommandError
from django.db import transaction

from arena.models import Battle, BattleChallenge, Spider

logger = logging.getLogger(__name__)

# whitelist; order is the delete order (dependents first)
RESETTABLE = {
    "battle_challenges": BattleChallenge,
    "battles": Battle,
    "spiders": Spider,
}


class Command(BaseCommand):
    help = "Delete battle history. Defaults to every resettable table."

    def add_arguments(self, parser):
        parser.add_argument(
            "--scope",
            nargs="+",
            default=list(RESETTABLE),
            help=f"Tables to wipe. Allowed: {', '.join(RESETTABLE)}",
        )

    def handle(self, *args, **options):
        scope = options["scope"]

        invalid = [name for name in scope if name not in RESETTABLE]
        if invalid:
            raise CommandError(
                f"Invalid table names in scope: {', '.join(invalid)}. "
                f"Allowed: {', '.join(RESETTABLE)}"
            )

        results = {}
        with transaction.atomic():
            for name, model in RESETTABLE.items():
                if name not in scope:
                    continue
                deleted, _ = model.objects.all().delete()
                results[name] = deleted

        logger.info("Reset tables: %s", results)
        for name, deleted in results.items():
            self.stdout.write(f"{name}: {deleted} rows deleted")
        self.stdout.write(self.style.SUCCESS("Reset completed"))
        return None
