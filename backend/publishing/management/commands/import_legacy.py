from typing import Any

from django.core.management.base import BaseCommand, CommandError
from django.db import connections

from publishing.counters import Counters
from publishing.importer import ENTITIES, LegacyImporter, LegacySource


class Command(BaseCommand):
    help = "Import into the publishing models the data from the Programmazione.it v6.4 MySQL database."

    def add_arguments(self, parser):
        parser.add_argument(
            "entities",
            nargs="+",
            help=(
                "The entities to import. Use 'all' to import everything, or separate multiple entities with a "
                f"space. The available entities are: {', '.join(ENTITIES)}."
            ),
        )
        parser.add_argument("--limit", type=int, default=0, help="Limit the imported records.")
        parser.add_argument("--database", default="legacy", help="The legacy database alias.")

    def handle(self, *args: Any, **options: Any):
        entities = options["entities"]
        unknown = [name for name in entities if name != "all" and name not in ENTITIES]
        if unknown:
            raise CommandError(f"Unknown entities: {', '.join(unknown)}")
        alias = options["database"]
        if alias not in connections.databases:
            raise CommandError(f"Database alias '{alias}' is not configured; set LEGACY_DB_NAME.")

        importer = LegacyImporter(
            LegacySource(alias),
            Counters(),
            limit=options["limit"],
            write=self.stdout.write,
        )
        stats = importer.run(entities)
        summary = ", ".join(f"{name}={values['imported']}/{values['rows']}" for name, values in stats.items())
        self.stdout.write(self.style.SUCCESS(f"Legacy import complete. {summary}"))
