from datetime import datetime, timezone

from flask_login import UserMixin
from werkzeug.security import generate_password_hash, check_password_hash

from smcr_builder import db, login_manager
from smcr_builder.fitness_keys import encode_fitness_key


@login_manager.user_loader
def load_user(user_id):
    return db.session.get(User, int(user_id))


class User(UserMixin, db.Model):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(64), unique=True, nullable=False, index=True)
    email = db.Column(db.String(120), unique=True, nullable=False)
    password_hash = db.Column(db.String(256), nullable=False)
    full_name = db.Column(db.String(128), nullable=False)
    role = db.Column(db.String(20), nullable=False, default="member")
    # Roles: admin, member
    created_at = db.Column(
        db.DateTime, default=lambda: datetime.now(timezone.utc)
    )

    firms = db.relationship("Firm", backref="owner", lazy="dynamic")

    def set_password(self, password):
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        return check_password_hash(self.password_hash, password)

    @property
    def is_admin(self):
        return self.role == "admin"


class Firm(db.Model):
    """A saved wizard draft: one firm profile plus its people and answers."""
    __tablename__ = "firms"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(256), nullable=False)
    firm_type = db.Column(db.String(32), nullable=False)
    smcr_category = db.Column(db.String(32), nullable=True)
    # SMCR: limited, core, enhanced / Payments: spi, api, aisp, emi, semi
    is_cass_firm = db.Column(db.Boolean, default=False, nullable=False)
    opt_up = db.Column(db.Boolean, default=False, nullable=False)
    jurisdictions = db.Column(db.JSON, default=list, nullable=False)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    created_at = db.Column(
        db.DateTime, default=lambda: datetime.now(timezone.utc)
    )
    updated_at = db.Column(
        db.DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    individuals = db.relationship(
        "Individual", backref="firm", lazy="dynamic", cascade="all, delete-orphan"
    )
    responsibilities = db.relationship(
        "ResponsibilityAssignment", backref="firm", lazy="dynamic", cascade="all, delete-orphan"
    )

    def user_can(self, user):
        return user.is_admin or self.user_id == user.id

    def to_profile(self):
        return {
            "firmName": self.name,
            "firmType": self.firm_type,
            "smcrCategory": self.smcr_category,
            "jurisdictions": list(self.jurisdictions or []),
            "isCASSFirm": bool(self.is_cass_firm),
            "optUp": bool(self.opt_up),
        }


class Individual(db.Model):
    __tablename__ = "individuals"

    # Durable id minted by reconciliation; stable across saves
    id = db.Column(db.String(36), primary_key=True)
    firm_id = db.Column(db.Integer, db.ForeignKey("firms.id", ondelete="CASCADE"), nullable=False, index=True)
    full_name = db.Column(db.String(256), nullable=False)
    smf_roles = db.Column(db.JSON, default=list, nullable=False)
    email = db.Column(db.String(256), nullable=True)
    role_title = db.Column(db.String(256), nullable=True)
    department = db.Column(db.String(128), nullable=True)
    reports_to = db.Column(db.String(36), nullable=True)
    position = db.Column(db.Integer, default=0, nullable=False)
    created_at = db.Column(
        db.DateTime, default=lambda: datetime.now(timezone.utc)
    )

    fitness_responses = db.relationship(
        "FitnessResponse", backref="individual", lazy="dynamic", cascade="all, delete-orphan"
    )

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.full_name,
            "smfRoles": list(self.smf_roles or []),
            "email": self.email,
            "roleTitle": self.role_title,
            "department": self.department,
            "reportsTo": self.reports_to,
        }


class ResponsibilityAssignment(db.Model):
    __tablename__ = "responsibility_assignments"
    __table_args__ = (
        db.UniqueConstraint("firm_id", "reference", name="uq_responsibility_firm_ref"),
    )

    id = db.Column(db.Integer, primary_key=True)
    firm_id = db.Column(db.Integer, db.ForeignKey("firms.id", ondelete="CASCADE"), nullable=False, index=True)
    reference = db.Column(db.String(32), nullable=False)
    title = db.Column(db.String(512), nullable=False)
    selected = db.Column(db.Boolean, default=True, nullable=False)
    owner_id = db.Column(
        db.String(36), db.ForeignKey("individuals.id", ondelete="SET NULL"), nullable=True
    )
    evidence = db.Column(db.Text, nullable=True)
    updated_at = db.Column(
        db.DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    owner = db.relationship("Individual")


class FitnessResponse(db.Model):
    __tablename__ = "fitness_responses"
    __table_args__ = (
        db.UniqueConstraint("individual_id", "section_id", "question_id", name="uq_fitness_key"),
    )

    id = db.Column(db.Integer, primary_key=True)
    individual_id = db.Column(
        db.String(36), db.ForeignKey("individuals.id", ondelete="CASCADE"), nullable=False, index=True
    )
    section_id = db.Column(db.String(64), nullable=False)
    question_id = db.Column(db.String(64), nullable=False)
    response = db.Column(db.Text, default="")
    # Response: yes, no, n/a or free text from older drafts
    details = db.Column(db.Text, nullable=True)
    answered_on = db.Column(db.String(32), nullable=True)
    evidence = db.Column(db.Text, nullable=True)
    updated_at = db.Column(
        db.DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    @property
    def composite_key(self):
        return encode_fitness_key(self.individual_id, self.section_id, self.question_id)

    def to_dict(self):
        return {
            "questionId": self.composite_key,
            "sectionId": self.section_id,
            "response": self.response or "",
            "details": self.details,
            "date": self.answered_on,
            "evidence": self.evidence or "",
        }
