from django.core.management.base import BaseCommand, CommandError

from bloodstock.services import AdminWorkflow


class Command(BaseCommand):
    help = "Mark an approved donation completed and add it to stock."

    def add_arguments(self, parser):
        parser.add_argument("donation_id", type=int)
        parser.add_argument("--actor", default="cli", help="Name recorded in the audit log")

    def handle(self, *args, **opts):
        result = AdminWorkflow(actor=opts["actor"]).complete_donation(opts["donation_id"])
        if not result.success:
            raise CommandError(result.message)
        self.stdout.write(self.style.SUCCESS(
            f"{result.message} {result.data['quantity_ml']}ml of {result.data['blood_type']} added."
        ))
