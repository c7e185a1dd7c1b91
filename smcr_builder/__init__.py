import os
import logging
import traceback

from flask import Flask, jsonify, request
from flask_sqlalchemy import SQLAlchemy
from flask_login import LoginManager

from config import Config

db = SQLAlchemy()
login_manager = LoginManager()
login_manager.login_view = "auth.login"
login_manager.login_message_category = "info"

_startup_errors = []


def create_app(config_class=Config):
    app = Flask(__name__)
    app.config.from_object(config_class)

    logging.basicConfig(level=app.config.get("LOG_LEVEL", "INFO"))
    logger = logging.getLogger(__name__)

    os.makedirs(app.instance_path, exist_ok=True)

    # HTTPS support behind a TLS-terminating proxy
    if os.environ.get("BEHIND_HTTPS_PROXY"):
        from werkzeug.middleware.proxy_fix import ProxyFix
        app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1)

    db.init_app(app)
    login_manager.init_app(app)

    # Gzip compression: drafts with full FIT answers compress well
    from flask_compress import Compress
    Compress(app)

    from smcr_builder.auth.routes import auth_bp
    from smcr_builder.dashboard.routes import dashboard_bp
    from smcr_builder.firms.routes import firms_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(dashboard_bp)
    app.register_blueprint(firms_bp)

    @login_manager.unauthorized_handler
    def unauthorized():
        if request.path.startswith("/api/") or request.is_json:
            return jsonify({"error": "Authentication required"}), 401
        from flask import redirect, url_for
        return redirect(url_for("auth.login", next=request.path))

    @app.route("/health")
    def health():
        """Health check: database connectivity and start-up problems."""
        db_url = app.config["SQLALCHEMY_DATABASE_URI"]
        db_type = db_url.split("://")[0] if "://" in db_url else "sqlite"

        db_ok = False
        db_error = None
        tables = []
        try:
            from sqlalchemy import inspect, text
            db.session.execute(text("SELECT 1"))
            db_ok = True
            inspector = inspect(db.engine)
            tables = inspector.get_table_names()
        except Exception as e:
            db_error = str(e)

        return jsonify({
            "status": "ok" if db_ok else "db_error",
            "database_type": db_type,
            "database_connected": db_ok,
            "database_error": db_error,
            "tables": tables,
            "startup_errors": _startup_errors,
        })

    @app.errorhandler(413)
    def payload_too_large(error):
        max_mb = app.config.get("MAX_CONTENT_LENGTH", 0) // (1024 * 1024)
        return jsonify({"error": f"Draft too large. Maximum size is {max_mb} MB."}), 413

    @app.errorhandler(500)
    def internal_error(error):
        try:
            db.session.rollback()
        except Exception as e:
            logger.error(f"Rollback after 500 failed: {e}")
        original = getattr(error, "original_exception", None) or error
        error_detail = f"{type(original).__name__}: {original}"
        logger.error(f"500 error: {error_detail}\n{traceback.format_exc()}")

        if request.path.startswith("/api/"):
            return jsonify({"error": "Something went wrong. Please try again."}), 500

        from markupsafe import escape
        safe_detail = escape(error_detail) if app.debug else ""
        html = f"""<!DOCTYPE html>
        <html><head><title>Error</title>
        <link href="https://cdn.jsdelivr.net/npm/bootstrap@5.3.3/dist/css/bootstrap.min.css" rel="stylesheet">
        </head><body class="bg-light">
        <div class="container py-5">
            <div class="card border-danger">
                <div class="card-header bg-danger text-white"><h5 class="mb-0">Server Error</h5></div>
                <div class="card-body">
                    <p>Something went wrong. The error has been logged.</p>
                    {"<p class='text-muted small'>" + str(safe_detail) + "</p>" if safe_detail else ""}
                    <p class="text-muted small">Check <a href="/health">/health</a> to verify database connectivity.</p>
                </div>
            </div>
        </div></body></html>"""
        return html, 500

    with app.app_context():
        try:
            db.create_all()
            logger.info("Database tables created/verified.")
        except Exception as e:
            msg = f"db.create_all() failed: {e}"
            logger.error(msg)
            _startup_errors.append(msg)

        try:
            _safe_migrate()
        except Exception as e:
            msg = f"_safe_migrate() failed: {e}"
            logger.error(msg)
            _startup_errors.append(msg)

        try:
            _seed_admin(app.config)
        except Exception as e:
            msg = f"_seed_admin() failed: {e}"
            logger.error(msg)
            _startup_errors.append(msg)

    return app


# Columns added after the first release: (table, column, DDL type)
_LATE_COLUMNS = [
    ("firms", "opt_up", "BOOLEAN DEFAULT FALSE NOT NULL"),
    ("individuals", "reports_to", "VARCHAR(36)"),
    ("individuals", "position", "INTEGER DEFAULT 0 NOT NULL"),
    ("responsibility_assignments", "evidence", "TEXT"),
    ("fitness_responses", "evidence", "TEXT"),
]


def _safe_migrate():
    """Add any missing columns to existing tables."""
    from sqlalchemy import inspect, text
    inspector = inspect(db.engine)
    table_names = inspector.get_table_names()

    for table, column, ddl in _LATE_COLUMNS:
        if table not in table_names:
            continue
        columns = [c["name"] for c in inspector.get_columns(table)]
        if column not in columns:
            db.session.execute(text(f"ALTER TABLE {table} ADD COLUMN {column} {ddl}"))
            db.session.commit()
            logging.getLogger(__name__).info(f"Added column {table}.{column}")


def _seed_admin(config):
    """Create the configured admin user if none exists."""
    from smcr_builder.models import User

    username = config.get("ADMIN_USERNAME", "admin")
    if not User.query.filter_by(username=username).first():
        admin = User(
            username=username,
            email=config.get("ADMIN_EMAIL", "admin@example.com"),
            role="admin",
            full_name="Administrator",
        )
        admin.set_password(config.get("ADMIN_PASSWORD", "admin123"))
        db.session.add(admin)
        db.session.commit()
