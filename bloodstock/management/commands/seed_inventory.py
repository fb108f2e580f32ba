# bloodstock/management/commands/seed_inventory.py
from django.core.management.base import BaseCommand, CommandError
from django.utils import timezone

from bloodstock.intake import complete_donation
from bloodstock.ledger import ledger
from bloodstock.models import BLOOD_TYPES, BloodType, Donation, Donor


class Command(BaseCommand):
    help = "Seed initial stock: complete seed donations until each blood type has collected PER_TYPE ml."

    def add_arguments(self, parser):
        parser.add_argument("--per-type", type=int, default=5000,
                            help="Target collected ml per blood type (default: 5000)")
        parser.add_argument("--unit-ml", type=int, default=500,
                            help="Volume of each seed donation in ml, 1..1000 (default: 500)")

    def handle(self, *args, **opts):
        per_type = opts["per_type"]
        unit_ml = opts["unit_ml"]
        if not 1 <= unit_ml <= 1000:
            raise CommandError("--unit-ml must be between 1 and 1000.")

        types = {bt.name: bt for bt in BloodType.objects.seed()}
        seed_ids = {bt: f"{i:09d}" for i, (bt, _) in enumerate(BLOOD_TYPES, start=1)}
        seed_types = {nid: bt for bt, nid in seed_ids.items()}

        # Refuse before writing anything if a seed id belongs to a donor of another type.
        for donor in Donor.objects.filter(national_id__in=seed_ids.values()).select_related("blood_type"):
            expected = seed_types[donor.national_id]
            if donor.blood_type.name != expected:
                raise CommandError(
                    f"Donor {donor.national_id} is {donor.blood_type.name}, expected seed donor for {expected}."
                )

        now = timezone.now()

        created_total = 0
        for bt, _ in BLOOD_TYPES:
            current = ledger.collected_ml(bt)
            to_add = max(0, per_type - current)
            if to_add == 0:
                self.stdout.write(f"{bt}: already has {current}ml collected, skipping.")
                continue

            # Technical donor per type; cooldown is not checked for seeded stock.
            seed_donor, _ = Donor.objects.get_or_create(
                national_id=seed_ids[bt],
                defaults={"full_name": f"Seed Stock {bt}", "blood_type": types[bt]},
            )

            remaining = to_add
            while remaining > 0:
                qty = min(unit_ml, remaining)
                donation = Donation.objects.create(
                    donor=seed_donor,
                    quantity_ml=qty,
                    status=Donation.Status.APPROVED,
                    donation_date=now,
                    approved_at=now,
                )
                complete_donation(donation.pk)
                remaining -= qty

            created_total += to_add
            self.stdout.write(self.style.SUCCESS(f"{bt}: collected {to_add}ml (now target={per_type}ml)."))

        self.stdout.write(self.style.SUCCESS(f"Done. Collected {created_total}ml total."))
