from pathlib import Path

from django.core.management.base import BaseCommand, CommandError

from bloodstock.exports import CONTENT_TYPES, distribution_table, export_distribution
from bloodstock.reports import inventory_summary


class Command(BaseCommand):
    help = "Print the per-type stock distribution, or export it as csv/xlsx/pdf."

    def add_arguments(self, parser):
        parser.add_argument("--format", choices=sorted(CONTENT_TYPES), default=None)
        parser.add_argument("--output", default=None,
                            help="File to write the export to (default: distribution.<format>)")

    def handle(self, *args, **opts):
        fmt = opts["format"]
        if fmt:
            filename, _, payload = export_distribution(fmt)
            path = Path(opts["output"] or filename)
            try:
                path.write_bytes(payload)
            except OSError as exc:
                raise CommandError(f"Could not write {path}: {exc}")
            self.stdout.write(self.style.SUCCESS(f"Wrote {path} ({len(payload)} bytes)."))
            return

        headers, rows = distribution_table()
        self.stdout.write(" | ".join(headers))
        for row in rows:
            self.stdout.write(" | ".join(str(c) for c in row))

        summary = inventory_summary()
        self.stdout.write(
            f"Total collected {summary['total_collected_ml']}ml, issued {summary['total_issued_ml']}ml, "
            f"available {summary['total_available_ml']}ml."
        )
