from django.core.management.base import BaseCommand, CommandError

from bloodstock.allocation import AllocationEngine
from bloodstock.exceptions import BloodStockError
from bloodstock.services import AdminWorkflow


class Command(BaseCommand):
    help = "Fulfil a blood request from the best compatible stock."

    def add_arguments(self, parser):
        parser.add_argument("request_id", type=int)
        parser.add_argument("--actor", default="cli", help="Name recorded in the audit log")
        parser.add_argument("--dry-run", action="store_true",
                            help="Only show which blood type would be used")

    def handle(self, *args, **opts):
        request_id = opts["request_id"]

        if opts["dry_run"]:
            try:
                chosen, snapshot = AllocationEngine().plan(request_id)
            except BloodStockError as exc:
                raise CommandError(exc.message)
            for code, available in snapshot.items():
                self.stdout.write(f"{code}: {available}ml")
            if chosen is None:
                raise CommandError("No single compatible blood type can cover this request.")
            self.stdout.write(self.style.SUCCESS(f"Would fulfil with {chosen}."))
            return

        result = AdminWorkflow(actor=opts["actor"]).fulfill_request(request_id)
        if not result.success:
            raise CommandError(result.message)
        self.stdout.write(self.style.SUCCESS(result.message))
