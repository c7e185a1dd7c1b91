"""
Draft persistence.

A save replaces the firm's profile, responsibility assignments, individuals
and fitness responses in one unit of work: either the whole reconciled draft
lands, or the session is rolled back and the previous draft is untouched.

Concurrent saves of the same draft are last-writer-wins at whole-draft
granularity; there is no version column.
"""

import logging
from datetime import datetime, timezone

from sqlalchemy.exc import SQLAlchemyError

from smcr_builder import db
from smcr_builder.applicability import orphaned_selections
from smcr_builder.models import Firm, FitnessResponse, Individual, ResponsibilityAssignment
from smcr_builder.reconciliation import reconcile_draft
from smcr_builder.smcr_catalog import PRESCRIBED_RESPONSIBILITIES

logger = logging.getLogger(__name__)


class DraftNotFoundError(LookupError):
    pass


class DraftPersistenceError(RuntimeError):
    """The atomic replace failed; nothing from this save was applied."""


def get_firm(firm_id):
    firm = db.session.get(Firm, firm_id)
    if firm is None:
        raise DraftNotFoundError(f"Draft {firm_id} not found")
    return firm


def _commit(action):
    try:
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error(f"{action} failed: {e}")
        raise DraftPersistenceError(f"{action} failed") from e


def _replace(firm, reconciled):
    profile = reconciled["firmProfile"]
    firm.name = profile["firmName"]
    firm.firm_type = profile["firmType"]
    firm.smcr_category = profile["smcrCategory"]
    firm.jurisdictions = profile["jurisdictions"]
    firm.is_cass_firm = profile["isCASSFirm"]
    firm.opt_up = profile["optUp"]
    firm.updated_at = datetime.now(timezone.utc)
    if firm.id is None:
        db.session.add(firm)
        db.session.flush()

    current = {ind.id: ind for ind in firm.individuals.all()}

    ResponsibilityAssignment.query.filter_by(firm_id=firm.id).delete(synchronize_session="fetch")
    if current:
        FitnessResponse.query.filter(
            FitnessResponse.individual_id.in_(list(current))
        ).delete(synchronize_session="fetch")

    keep_ids = {ind["id"] for ind in reconciled["individuals"]}
    for ind_id, ind in current.items():
        if ind_id not in keep_ids:
            db.session.delete(ind)

    for position, data in enumerate(reconciled["individuals"]):
        ind = current.get(data["id"])
        if ind is None:
            ind = Individual(id=data["id"], firm_id=firm.id)
            db.session.add(ind)
        ind.full_name = data["name"]
        ind.smf_roles = data["smfRoles"]
        ind.email = data["email"]
        ind.role_title = data["roleTitle"]
        ind.department = data["department"]
        ind.reports_to = data["reportsTo"]
        ind.position = position
    db.session.flush()

    for row in reconciled["responsibilities"]:
        db.session.add(ResponsibilityAssignment(
            firm_id=firm.id,
            reference=row["reference"],
            title=row["title"],
            selected=row["selected"],
            owner_id=row["ownerId"],
            evidence=row["evidence"],
        ))

    for row in reconciled["fitnessResponses"]:
        db.session.add(FitnessResponse(
            individual_id=row["individualId"],
            section_id=row["sectionId"],
            question_id=row["question"],
            response=row["response"],
            details=row["details"],
            answered_on=row["date"],
            evidence=row["evidence"],
        ))
    db.session.flush()


def create_draft(user, payload, default_jurisdictions=("UK",)):
    """Reconcile and persist a new draft. Returns (firm, reconciled)."""
    reconciled = reconcile_draft(set(), payload, default_jurisdictions)
    firm = Firm(user_id=user.id)
    try:
        _replace(firm, reconciled)
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error(f"Creating draft failed: {e}")
        raise DraftPersistenceError("Creating draft failed") from e
    _commit("Creating draft")
    logger.info(f"Created draft {firm.id} with {len(reconciled['individuals'])} individuals")
    return firm, reconciled


def save_draft(firm, payload, default_jurisdictions=("UK",)):
    """
    Replace an existing draft with a newly submitted payload.

    Validation (DraftValidationError) happens before the session is touched.
    """
    existing_ids = {ind.id for ind in firm.individuals.all()}
    reconciled = reconcile_draft(existing_ids, payload, default_jurisdictions)
    try:
        _replace(firm, reconciled)
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error(f"Saving draft {firm.id} failed: {e}")
        raise DraftPersistenceError(f"Saving draft {firm.id} failed") from e
    _commit(f"Saving draft {firm.id}")
    return reconciled


def load_draft(firm):
    """Read a draft back in the shape the wizard submits it."""
    individuals = firm.individuals.order_by(Individual.position, Individual.created_at).all()
    rows = firm.responsibilities.order_by(ResponsibilityAssignment.id).all()
    ids = [ind.id for ind in individuals]
    fitness = []
    if ids:
        fitness = (
            FitnessResponse.query.filter(FitnessResponse.individual_id.in_(ids))
            .order_by(FitnessResponse.id)
            .all()
        )

    assignments = {r["ref"]: False for r in PRESCRIBED_RESPONSIBILITIES}
    for row in rows:
        assignments[row.reference] = bool(row.selected)
    owners = {row.reference: row.owner_id for row in rows if row.owner_id}
    evidence = {row.reference: row.evidence for row in rows if row.evidence}

    profile = firm.to_profile()
    return {
        "id": firm.id,
        "firmProfile": profile,
        "responsibilities": [
            {
                "ref": row.reference,
                "title": row.title,
                "selected": bool(row.selected),
                "ownerId": row.owner_id,
                "evidence": row.evidence,
            }
            for row in rows
        ],
        "responsibilityAssignments": assignments,
        "responsibilityOwners": owners,
        "responsibilityEvidence": evidence,
        "individuals": [ind.to_dict() for ind in individuals],
        "fitnessResponses": [f.to_dict() for f in fitness],
        "orphanedResponsibilities": orphaned_selections(profile, assignments),
        "updatedAt": firm.updated_at.isoformat() if firm.updated_at else None,
    }


def list_drafts(user):
    query = Firm.query if user.is_admin else Firm.query.filter_by(user_id=user.id)
    return query.order_by(Firm.updated_at.desc()).all()


def delete_draft(firm):
    firm_id = firm.id
    db.session.delete(firm)
    _commit(f"Deleting draft {firm_id}")


def delete_individual(firm, individual_id):
    """
    Delete one individual explicitly.

    Their fitness responses cascade; responsibilities they owned become
    unowned and reporting lines to them are cleared.
    """
    ind = firm.individuals.filter_by(id=individual_id).first()
    if ind is None:
        raise DraftNotFoundError(f"Individual {individual_id} not found in draft {firm.id}")

    ResponsibilityAssignment.query.filter_by(
        firm_id=firm.id, owner_id=individual_id
    ).update({"owner_id": None}, synchronize_session=False)
    Individual.query.filter_by(
        firm_id=firm.id, reports_to=individual_id
    ).update({"reports_to": None}, synchronize_session=False)
    db.session.delete(ind)
    firm.updated_at = datetime.now(timezone.utc)
    _commit(f"Deleting individual {individual_id}")


def clear_orphaned_selections(firm):
    """Remove stored selections that no longer apply to the firm profile. Returns the cleared refs."""
    draft = load_draft(firm)
    orphaned = draft["orphanedResponsibilities"]
    if not orphaned:
        return []
    ResponsibilityAssignment.query.filter(
        ResponsibilityAssignment.firm_id == firm.id,
        ResponsibilityAssignment.reference.in_(orphaned),
    ).delete(synchronize_session="fetch")
    firm.updated_at = datetime.now(timezone.utc)
    _commit(f"Clearing orphaned selections for draft {firm.id}")
    logger.info(f"Cleared {len(orphaned)} orphaned selections from draft {firm.id}")
    return orphaned
