"""
CSV export of the responsibilities matrix.
"""

import csv
import io
import re
from datetime import date

CSV_HEADERS = [
    "PR Reference",
    "Responsibility",
    "Category",
    "Mandatory",
    "Owner Name",
    "Owner SMF Role",
    "Owner Email",
    "Status",
]

PLACEHOLDER = "-"


def generate_responsibilities_csv(assigned_responsibilities, responsibility_owners, individuals):
    """
    Build CSV text for the selected responsibilities and their owners.

    Args:
        assigned_responsibilities: catalog entries (ref, text, cat, mandatory)
        responsibility_owners: dict of {ref: individual_id}
        individuals: list of individual dicts (id, name, smfRoles, email)

    Returns:
        CSV content as a string, header row first.
    """
    owners = responsibility_owners or {}
    by_id = {ind["id"]: ind for ind in individuals or []}

    out = io.StringIO()
    writer = csv.writer(out, lineterminator="\n")
    writer.writerow(CSV_HEADERS)
    for resp in assigned_responsibilities:
        owner = by_id.get(owners.get(resp["ref"]))
        if owner:
            writer.writerow([
                resp["ref"],
                resp["text"],
                resp["cat"],
                "Yes" if resp["mandatory"] else "No",
                owner.get("name") or "",
                "; ".join(owner.get("smfRoles") or []) or PLACEHOLDER,
                owner.get("email") or PLACEHOLDER,
                "Assigned",
            ])
        else:
            writer.writerow([
                resp["ref"],
                resp["text"],
                resp["cat"],
                "Yes" if resp["mandatory"] else "No",
                "Unassigned",
                PLACEHOLDER,
                PLACEHOLDER,
                "Pending Assignment",
            ])
    return out.getvalue()


def generate_csv_filename(firm_name, today=None):
    slug = re.sub(r"[^a-z0-9]", "-", (firm_name or "firm").lower())
    slug = re.sub(r"-+", "-", slug)[:50].strip("-") or "firm"
    today = today or date.today()
    return f"smcr-responsibilities-{slug}-{today.isoformat()}.csv"
