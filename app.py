import logging
import os

import mysql.connector
from flask import Flask, render_template, send_from_directory, session
from flask_wtf.csrf import CSRFProtect

from auth_utils import login_required
from config import Config
from routes.analytics import analytics_bp
from routes.auth import auth_bp
from routes.budgets import budgets_bp
from routes.categories import categories_bp
from routes.dashboard import dashboard_bp
from routes.goals import goals_bp
from routes.settings import settings_bp
from routes.transactions import transactions_bp
from services.currency import DEFAULT_CURRENCY, format_currency, format_currency_compact, get_currency_symbol
from services.dates import format_transaction_date

csrf = CSRFProtect()


def clamp_filter(value, min_val=0, max_val=100):
    try:
        return max(min(float(value), max_val), min_val)
    except (ValueError, TypeError):
        return 0


def currency_filter(value, code=None):
    return format_currency(value, code or session.get('currency', DEFAULT_CURRENCY))


def compact_currency_filter(value, code=None):
    return format_currency_compact(value, code or session.get('currency', DEFAULT_CURRENCY))


def configure_logging(app):
    level = getattr(logging, str(app.config.get('LOG_LEVEL', 'INFO')).upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    app.logger.setLevel(level)


def create_app(config_class=Config):
    app = Flask(__name__)
    app.config.from_object(config_class)

    if not app.config.get("SECRET_KEY"):
        import secrets
        app.config["SECRET_KEY"] = secrets.token_hex(32)

    configure_logging(app)
    config_class.init_db(app)
    csrf.init_app(app)

    os.makedirs(app.config['UPLOAD_FOLDER'], exist_ok=True)
    os.makedirs(app.config['AVATAR_FOLDER'], exist_ok=True)

    app.register_blueprint(auth_bp)
    app.register_blueprint(dashboard_bp)
    app.register_blueprint(transactions_bp)
    app.register_blueprint(categories_bp)
    app.register_blueprint(budgets_bp)
    app.register_blueprint(goals_bp)
    app.register_blueprint(analytics_bp)
    app.register_blueprint(settings_bp)

    app.jinja_env.filters['clamp'] = clamp_filter
    app.jinja_env.filters['currency'] = currency_filter
    app.jinja_env.filters['compact_currency'] = compact_currency_filter
    app.jinja_env.filters['txdate'] = format_transaction_date

    @app.context_processor
    def inject_currency():
        code = session.get('currency', DEFAULT_CURRENCY)
        return {'currency_code': code, 'currency_symbol': get_currency_symbol(code)}

    @app.after_request
    def set_security_headers(response):
        response.headers['X-Content-Type-Options'] = 'nosniff'
        response.headers['X-Frame-Options'] = 'SAMEORIGIN'
        response.headers['X-XSS-Protection'] = '1; mode=block'
        response.headers['Referrer-Policy'] = 'strict-origin-when-cross-origin'
        return response

    @app.errorhandler(mysql.connector.Error)
    def database_error(error):
        app.logger.exception("Database error: %s", error)
        return render_template('errors/500.html'), 500

    @app.errorhandler(404)
    def not_found(error):
        return render_template('errors/404.html'), 404

    @app.route('/uploads/avatars/<path:filename>')
    @login_required
    def avatar_file(filename):
        return send_from_directory(app.config['AVATAR_FOLDER'], filename)

    return app
