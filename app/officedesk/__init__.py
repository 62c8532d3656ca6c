import logging
from datetime import timedelta
from decimal import Decimal

from flask import Flask, g, render_template, request
from dotenv import load_dotenv

from app.officedesk.config import is_production, load_config
from app.officedesk.db import db_session, init_db, teardown_db_session
from app.officedesk.utils import BoundedIntConverter
from app.officedesk.routes import bp as routes_bp
from app.officedesk.auth import bp as auth_bp, load_current_user
from app.officedesk.admin import bp as admin_bp
from app.officedesk.modules.settings.admin import bp as settings_bp
from app.officedesk.modules.catalog.admin import bp as catalog_bp
from app.officedesk.modules.clients.admin import bp as clients_bp
from app.officedesk.modules.tasks.admin import bp as tasks_bp
from app.officedesk.modules.expenses.admin import bp as expenses_bp
from app.officedesk.modules.messages.admin import bp as messages_bp
from app.officedesk.modules.recruitment.admin import bp as recruitment_bp
from app.officedesk.modules.withdrawals.admin import bp as withdrawals_bp
from app.officedesk.modules.reports.admin import bp as reports_bp

_SKIP_PREFIXES = ("/static/", "/health", "/healthz")


def create_app() -> Flask:
    load_dotenv()
    app = Flask(__name__, template_folder="templates", static_folder="static")
    app.config.from_mapping(load_config())
    app.config["PERMANENT_SESSION_LIFETIME"] = timedelta(hours=int(app.config.get("SESSION_HOURS") or 8))
    app.config["SESSION_REFRESH_EACH_REQUEST"] = True
    app.url_map.converters["int"] = BoundedIntConverter

    from app.officedesk.security import csrf_protect, ensure_csrf_token

    @app.context_processor
    def _inject_csrf() -> dict:
        return {"csrf_token": ensure_csrf_token()}

    @app.context_processor
    def _inject_permissions() -> dict:
        from app.officedesk.rbac import user_has_permission, user_role_key

        user = getattr(g, "current_user", None)

        def has_perm(key: str) -> bool:
            return user_has_permission(user, key)

        return {"has_perm": has_perm, "current_role": user_role_key(user)}

    @app.context_processor
    def _inject_app_settings() -> dict:
        from app.officedesk.modules.messages.service import unread_count
        from app.officedesk.modules.settings.service import get_settings

        user = getattr(g, "current_user", None)
        if request.path.startswith(_SKIP_PREFIXES):
            return {}
        s = db_session()
        settings = get_settings(s)
        return {
            "app_settings": settings,
            "currency": settings.currency_symbol,
            "unread_messages": unread_count(s, user.id) if user else 0,
        }

    @app.template_filter("dateformat")
    def _dateformat_filter(value, format: str = "%Y-%m-%d") -> str:
        if value is None:
            return "-"
        if hasattr(value, "strftime"):
            return value.strftime(format)
        return str(value)

    @app.template_filter("money")
    def _money_filter(value) -> str:
        if value is None:
            value = Decimal("0")
        return f"{Decimal(str(value)):,.2f}"

    @app.before_request
    def _csrf_guard():
        if request.path.startswith(_SKIP_PREFIXES):
            return None
        return csrf_protect()

    # Production guardrails (fail fast with clear logs)
    if is_production(app.config.get("ENV")):
        if not app.config.get("DATABASE_URL") or str(app.config["DATABASE_URL"]).strip() == "":
            raise RuntimeError("DATABASE_URL is required in production.")
        if str(app.config["DATABASE_URL"]).startswith("sqlite"):
            raise RuntimeError("DATABASE_URL must be Postgres in production (not sqlite).")
        if not app.config.get("SECRET_KEY") or str(app.config["SECRET_KEY"]) in ("", "change-me"):
            raise RuntimeError("SECRET_KEY must be set to a strong value in production (not default).")

    init_db(app)

    def _dispose_engine_on_fork() -> None:
        import os

        if hasattr(os, "register_at_fork"):
            def _after_fork_child():
                engine = app.extensions.get("sqlalchemy_engine")
                if engine:
                    engine.dispose()
                    app.logger.info("Disposed DB engine after fork (pid=%s)", os.getpid())

            os.register_at_fork(after_in_child=_after_fork_child)

    _dispose_engine_on_fork()

    app.register_blueprint(routes_bp)
    app.register_blueprint(auth_bp, url_prefix="/auth")
    app.register_blueprint(admin_bp, url_prefix="/admin")
    app.register_blueprint(settings_bp, url_prefix="/admin")
    app.register_blueprint(expenses_bp, url_prefix="/admin")
    app.register_blueprint(catalog_bp)
    app.register_blueprint(clients_bp)
    app.register_blueprint(tasks_bp)
    app.register_blueprint(messages_bp)
    app.register_blueprint(recruitment_bp)
    app.register_blueprint(withdrawals_bp)
    app.register_blueprint(reports_bp)

    def _load_user_wrapper():
        if request.path.startswith(_SKIP_PREFIXES):
            g.current_user = None
            return None
        return load_current_user()

    app.before_request(_load_user_wrapper)
    app.teardown_appcontext(teardown_db_session)

    @app.errorhandler(500)
    def _err_500(e):  # type: ignore[no-redef]
        rid = getattr(g, "request_id", None)
        app.logger.exception("Unhandled 500 (request_id=%s)", rid)
        s = getattr(g, "db_session", None)
        if s is not None:
            # The error page reads settings; a failed flush must be rolled back first.
            s.rollback()
        return render_template("errors/500.html"), 500

    @app.errorhandler(404)
    def _err_404(e):  # type: ignore[no-redef]
        return render_template("errors/404.html"), 404

    @app.errorhandler(403)
    def _err_403(e):  # type: ignore[no-redef]
        missing = getattr(g, "missing_permission", None)
        if missing:
            app.logger.warning("Forbidden: missing_permission=%s request_id=%s", missing, getattr(g, "request_id", None))
        return render_template("errors/403.html", missing_permission=missing), 403

    @app.errorhandler(413)
    def _err_413(e):  # type: ignore[no-redef]
        return render_template("errors/400.html", message="Request too large."), 413

    logging.getLogger(__name__).info("create_app() complete; app ready to serve")

    return app
