import os
import logging
from datetime import datetime

import click
from flask import Flask

from config import Config
from extensions import init_extensions, tokens
from services.security_middleware import page_access_gate


def create_app(config_class=Config):
    app = Flask(__name__, static_folder="static", static_url_path="")
    app.config.from_object(config_class)
    if app.config.get("DEBUG", False):
        app.config['SEND_FILE_MAX_AGE_DEFAULT'] = 0
        app.config["PROPAGATE_EXCEPTIONS"] = True

    # ------------------------------------------------------------------------------------------
    # Logging
    # ------------------------------------------------------------------------------------------
    logs_dir = app.config.get("LOG_DIR", "logs")
    os.makedirs(logs_dir, exist_ok=True)

    file_handler = logging.FileHandler(os.path.join(logs_dir, 'app.log'), mode='a', encoding='utf-8')
    file_handler.setFormatter(logging.Formatter(
        '%(asctime)s %(levelname)s: %(message)s [in %(pathname)s:%(lineno)d]'
    ))
    file_handler.setLevel(logging.INFO)

    app.logger.handlers.clear()
    app.logger.addHandler(file_handler)
    app.logger.setLevel(logging.INFO)
    app.logger.propagate = False  # Prevent duplicate logs

    if app.debug:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(logging.DEBUG)
        app.logger.addHandler(console_handler)

    # --------------------------------------------------------------------------------------------------------------------------
    # Initialize extensions
    # ----------------------------------------------------------------------------------------------------------------------------
    init_extensions(app)
    page_access_gate.init_app(app, tokens)

    # ------------------------------------------------------------------------------------------------------------------------
    # Register blueprints
    # -----------------------------------------------------------------------------------------------------------------------
    def register_blueprints(app):
        from blueprints.auth import bp as auth_bp
        from blueprints.profile import bp as profile_bp
        from blueprints.admin import admin_bp as admin_bp
        from blueprints.salesperson import bp as salesperson_bp
        from blueprints.logo import bp as logo_bp
        from blueprints.payments import bp as payment_bp
        from blueprints.vip import bp as vip_bp
        from blueprints.orders import bp as orders_bp
        from blueprints.invite import bp as invite_bp
        from blueprints.country_codes import bp as country_codes_bp

        app.register_blueprint(auth_bp)
        app.register_blueprint(profile_bp)
        app.register_blueprint(admin_bp)
        app.register_blueprint(salesperson_bp)
        app.register_blueprint(logo_bp)
        app.register_blueprint(payment_bp)
        app.register_blueprint(vip_bp)
        app.register_blueprint(orders_bp)
        app.register_blueprint(invite_bp)
        app.register_blueprint(country_codes_bp)

    register_blueprints(app)

    # ----------------------
    # Basic routes
    # ----------------------
    @app.route("/healthz")
    def healthz():
        return {"status": "ok", "timestamp": datetime.now().isoformat()}, 200

    # ----------------------
    # CLI
    # ----------------------
    @app.cli.command("create-admin")
    @click.option("--username", required=True)
    @click.option("--password", required=True)
    @click.option("--level", default=1, type=int, help="0 = super admin, 1 = admin")
    def create_admin_command(username, password, level):
        """Create an admin account or reset an existing one."""
        from make_admin import make_admin
        admin, created = make_admin(username, password, level)
        click.echo(f"{'Created' if created else 'Updated'} admin {admin.username} (level {admin.permission_level})")

    app.logger.info("Application started")
    return app


# ----------------------
# Local development
# ----------------------
if __name__ == "__main__":
    app = create_app()
    port = int(os.environ.get("PORT", 5000))
    debug_mode = app.config.get("DEBUG", False)
    app.run(debug=debug_mode, host="0.0.0.0", port=port)
