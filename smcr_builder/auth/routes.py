import re

from flask import Blueprint, render_template_string, redirect, url_for, request, jsonify, current_app
from flask_login import login_user, logout_user, login_required, current_user

from smcr_builder import db
from smcr_builder.models import User

auth_bp = Blueprint("auth", __name__, url_prefix="/auth")

MIN_PASSWORD_LENGTH = 8

USER_ROLES = ("admin", "member")

LOGIN_FORM = """<!DOCTYPE html>
<html><head><title>Sign in - SMCR Builder</title>
<link href="https://cdn.jsdelivr.net/npm/bootstrap@5.3.3/dist/css/bootstrap.min.css" rel="stylesheet">
</head><body class="bg-light">
<div class="container py-5" style="max-width:420px">
  <h4 class="mb-3">Sign in</h4>
  {% if error %}<div class="alert alert-danger">{{ error }}</div>{% endif %}
  <form method="post">
    <input class="form-control mb-2" name="username" placeholder="Username" autofocus>
    <input class="form-control mb-3" name="password" type="password" placeholder="Password">
    <button class="btn btn-primary w-100" type="submit">Sign in</button>
  </form>
</div></body></html>"""


def _validate_password(password):
    """Check password meets minimum strength requirements."""
    if len(password) < MIN_PASSWORD_LENGTH:
        return f"Password must be at least {MIN_PASSWORD_LENGTH} characters."
    if not re.search(r'[A-Za-z]', password):
        return "Password must contain at least one letter."
    if not re.search(r'[0-9]', password):
        return "Password must contain at least one number."
    return None


def _user_dict(user):
    return {
        "id": user.id,
        "username": user.username,
        "email": user.email,
        "fullName": user.full_name,
        "role": user.role,
    }


def _form():
    """Request fields from a JSON body or a submitted form."""
    if request.is_json:
        return request.get_json(silent=True) or {}
    return request.form


@auth_bp.route("/login", methods=["GET", "POST"])
def login():
    if request.method == "GET":
        if current_user.is_authenticated:
            return redirect(url_for("dashboard.index"))
        return render_template_string(LOGIN_FORM, error=None)

    data = _form()
    username = (data.get("username") or "").strip()
    password = data.get("password") or ""
    user = User.query.filter_by(username=username).first()

    if not user or not user.check_password(password):
        current_app.logger.info(f"Failed login for '{username}'")
        if request.is_json:
            return jsonify({"error": "Invalid username or password."}), 401
        return render_template_string(LOGIN_FORM, error="Invalid username or password."), 401

    login_user(user)
    if request.is_json:
        return jsonify({"user": _user_dict(user)})
    next_page = request.args.get("next")
    # Only follow relative redirects
    if not next_page or not next_page.startswith("/") or next_page.startswith("//"):
        next_page = url_for("dashboard.index")
    return redirect(next_page)


@auth_bp.route("/logout")
@login_required
def logout():
    logout_user()
    if request.is_json:
        return jsonify({"ok": True})
    return redirect(url_for("auth.login"))


@auth_bp.route("/users", methods=["POST"])
@login_required
def create_user():
    if not current_user.is_admin:
        return jsonify({"error": "Access denied."}), 403

    data = _form()
    username = (data.get("username") or "").strip()
    email = (data.get("email") or "").strip()
    full_name = (data.get("full_name") or data.get("fullName") or "").strip()
    role = data.get("role") or "member"
    password = data.get("password") or ""

    if not username or not email or not password or not full_name:
        error = "All required fields must be filled."
    elif role not in USER_ROLES:
        error = f"Role must be one of: {', '.join(USER_ROLES)}."
    elif User.query.filter_by(username=username).first():
        error = "Username already exists."
    elif User.query.filter_by(email=email).first():
        error = "Email already exists."
    else:
        error = _validate_password(password)
    if error:
        return jsonify({"error": error}), 400

    user = User(username=username, email=email, full_name=full_name, role=role)
    user.set_password(password)
    db.session.add(user)
    db.session.commit()
    current_app.logger.info(f"User '{username}' created by {current_user.username}")
    return jsonify({"user": _user_dict(user)}), 201
