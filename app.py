import os

import click
from flask import Flask, jsonify
from flask_cors import CORS

from config import Config
from extensions import db, migrate, jwt

# Models (imported so every table is registered before create_all / migrate)
from users import models as user_models  # noqa: F401
from payments import models as payment_models  # noqa: F401
from notifications import models as notification_models  # noqa: F401
from audit import models as audit_models  # noqa: F401

# Blueprints
from users.routes import users_bp
from payments.routes import payments_bp
from notifications.routes import notifications_bp
from audit.routes import audit_bp

from payments.billing import init_billing
from notifications.telegram import init_notifications
from users.cohorts import CohortReport
from users.jobs import ensure_roles, sweep_suspensions


def create_app(config_object=Config):
    app = Flask(__name__)
    app.config.from_object(config_object)

    # ✅ Enable CORS with credentials so cookies work
    CORS(app, supports_credentials=True)

    # ✅ Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)
    jwt.init_app(app)

    # ✅ Report cache lives with the app, not in module state
    app.extensions["cohort_report"] = CohortReport()

    # ✅ Post-commit subscribers (billing, Telegram)
    init_billing(app)
    init_notifications(app)

    # ✅ Register Blueprints
    app.register_blueprint(users_bp, url_prefix="/api/users")
    app.register_blueprint(payments_bp, url_prefix="/api/payments")
    app.register_blueprint(notifications_bp, url_prefix="/api/notifications")
    app.register_blueprint(audit_bp, url_prefix="/api/audit")

    # ✅ CLI
    @app.cli.command("suspend-overdue")
    def suspend_overdue_command():
        """Suspend every member whose payments are overdue."""
        ids = sweep_suspensions()
        click.echo(f"Suspended {len(ids)} member(s): {ids}")

    @app.cli.command("seed-roles")
    def seed_roles_command():
        """Create the hacker/admin/device roles."""
        ensure_roles()
        click.echo("Roles ready")

    def _sweep_with_app():
        with app.app_context():
            try:
                sweep_suspensions()
            except Exception:
                app.logger.exception("Suspension sweep crashed")

    def start_scheduler():
        if not app.config.get("SCHEDULER_ENABLED"):
            return
        # ⚠️ Prevent running during CLI commands (db migrate, shell, etc.)
        if os.environ.get("WERKZEUG_RUN_MAIN") != "true":
            return

        from apscheduler.schedulers.background import BackgroundScheduler

        scheduler = BackgroundScheduler()
        scheduler.add_job(
            _sweep_with_app,
            'interval',
            hours=app.config.get("SUSPENSION_SWEEP_HOURS", 6),
            id='suspension_sweep',
            max_instances=1,
            coalesce=True,
            replace_existing=True,
            misfire_grace_time=600
        )
        scheduler.start()
        app.logger.info("Suspension sweep scheduler started")

    start_scheduler()

    @app.route("/health")
    def health():
        return jsonify({"status": "ok"}), 200

    # ✅ Error handlers
    @app.errorhandler(404)
    def not_found(error):
        return jsonify({"error": "Route not found"}), 404

    @app.errorhandler(500)
    def internal_error(error):
        return jsonify({"error": "Internal server error"}), 500

    return app


if __name__ == '__main__':
    app = create_app()
    app.run(host="0.0.0.0", port=int(os.environ.get("PORT", 10000)), debug=True)
