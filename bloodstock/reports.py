# bloodstock/reports.py
from django.db.models import Count, Q, Sum
from django.db.models.functions import TruncMonth

from .ledger import Ledger, ledger as default_ledger
from .models import BloodRequest, BloodType, Donation, Donor
from .states import DonationStatus, RequestStatus

OPEN_REQUEST = Q(status__in=[RequestStatus.PENDING, RequestStatus.APPROVED])


def inventory_summary(ledger: Ledger = None) -> dict:
    ledger = ledger or default_ledger
    collected = ledger.total_collected()
    issued = ledger.total_issued()

    requests_by_status = {status: 0 for status in RequestStatus.values}
    for row in BloodRequest.objects.values("status").annotate(cnt=Count("id")):
        requests_by_status[row["status"]] = row["cnt"]

    return {
        "total_collected_ml": collected,
        "total_issued_ml": issued,
        "total_available_ml": collected - issued,
        "completed_donations": Donation.objects.filter(status=DonationStatus.COMPLETED).count(),
        "total_donors": Donor.objects.count(),
        "available_donors": Donor.objects.filter(is_available=True).count(),
        "total_requests": sum(requests_by_status.values()),
        "requests_by_status": requests_by_status,
    }


def distribution_rows(ledger: Ledger = None) -> list:
    """
    One row per blood type: ledger totals and stock status, plus donor and
    open-request counts for the dashboard table.
    """
    ledger = ledger or default_ledger
    levels = {level.blood_type: level for level in ledger.distribution()}

    per_type = BloodType.objects.annotate(
        donor_count=Count("donors", distinct=True),
    ).order_by("id")
    completed = dict(
        Donation.objects.filter(status=DonationStatus.COMPLETED)
        .values_list("donor__blood_type__name")
        .annotate(cnt=Count("id"))
    )
    open_requests = {
        row["blood_type__name"]: row
        for row in BloodRequest.objects.filter(OPEN_REQUEST)
        .values("blood_type__name")
        .annotate(cnt=Count("id"), qty=Sum("quantity_ml"))
    }

    rows = []
    for bt in per_type:
        level = levels[bt.name]
        pending = open_requests.get(bt.name, {})
        rows.append({
            "blood_type": bt.name,
            "description": bt.description,
            "donor_count": bt.donor_count,
            "completed_donations": completed.get(bt.name, 0),
            "collected_ml": level.collected_ml,
            "issued_ml": level.issued_ml,
            "available_ml": level.available_ml,
            "pending_requests": pending.get("cnt", 0),
            "pending_request_ml": pending.get("qty") or 0,
            "status": level.status.label,
        })
    return rows


def monthly_donations(limit=12) -> list:
    qs = (
        Donation.objects.filter(status=DonationStatus.COMPLETED)
        .annotate(month=TruncMonth("donation_date"))
        .values("month")
        .annotate(count=Count("id"), total_ml=Sum("quantity_ml"))
        .order_by("-month")[:limit]
    )
    return [
        {"month": row["month"].strftime("%Y-%m"), "count": row["count"], "total_ml": row["total_ml"] or 0}
        for row in qs
    ]
