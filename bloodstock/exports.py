# bloodstock/exports.py
import csv
import io

from .reports import distribution_rows

CONTENT_TYPES = {
    "csv": "text/csv",
    "xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "pdf": "application/pdf",
}

DISTRIBUTION_HEADERS = [
    "Blood type", "Donors", "Completed donations", "Collected (ml)", "Issued (ml)",
    "Available (ml)", "Pending requests", "Requested (ml)", "Status",
]


def export_rows(title, headers, rows, fmt="csv") -> bytes:
    fmt = (fmt or "csv").lower()
    if fmt not in CONTENT_TYPES:
        raise ValueError(f"Unsupported export format: {fmt}")

    if fmt == "xlsx":
        from openpyxl import Workbook
        wb = Workbook()
        ws = wb.active
        ws.title = "data"
        ws.append(headers)
        for r in rows:
            ws.append(r)
        buf = io.BytesIO()
        wb.save(buf)
        return buf.getvalue()
    elif fmt == "pdf":
        from reportlab.lib.pagesizes import A4, landscape
        from reportlab.lib import colors
        from reportlab.platypus import SimpleDocTemplate, Table, TableStyle, Paragraph, Spacer
        from reportlab.lib.styles import getSampleStyleSheet

        buf = io.BytesIO()
        doc = SimpleDocTemplate(buf, pagesize=landscape(A4), title=title)
        styles = getSampleStyleSheet()
        elems = [Paragraph(title.title(), styles["Title"]), Spacer(1, 12)]

        table = Table([headers] + [[str(c) for c in r] for r in rows], repeatRows=1)
        table.setStyle(
            TableStyle(
                [
                    ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor("#c81d25")),
                    ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
                    ("ALIGN", (0, 0), (-1, -1), "CENTER"),
                    ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
                    ("BOTTOMPADDING", (0, 0), (-1, 0), 8),
                    ("BACKGROUND", (0, 1), (-1, -1), colors.whitesmoke),
                    ("GRID", (0, 0), (-1, -1), 0.5, colors.lightgrey),
                ]
            )
        )
        elems.append(table)
        doc.build(elems)
        return buf.getvalue()
    else:
        buf = io.StringIO()
        writer = csv.writer(buf)
        writer.writerow(headers)
        for r in rows:
            writer.writerow(r)
        return buf.getvalue().encode("utf-8")


def distribution_table():
    rows = [
        [
            r["blood_type"], r["donor_count"], r["completed_donations"], r["collected_ml"],
            r["issued_ml"], r["available_ml"], r["pending_requests"], r["pending_request_ml"], r["status"],
        ]
        for r in distribution_rows()
    ]
    return DISTRIBUTION_HEADERS, rows


def export_distribution(fmt="csv") -> tuple:
    """Returns (filename, content_type, payload)."""
    fmt = (fmt or "csv").lower()
    headers, rows = distribution_table()
    payload = export_rows("blood stock distribution", headers, rows, fmt)
    return f"distribution.{fmt}", CONTENT_TYPES[fmt], payload
