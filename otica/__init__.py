"""Flask application factory."""
from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException
from otica.database import init_db
import os


def create_app(config_object='config.Config'):
    """Create and configure the Flask application."""
    app = Flask(__name__)
    app.config.from_object(config_object)

    # Sentry error tracking in production
    if os.getenv('SENTRY_DSN') and app.config.get('ENV') == 'production':
        import sentry_sdk
        from sentry_sdk.integrations.flask import FlaskIntegration

        sentry_sdk.init(
            dsn=os.getenv('SENTRY_DSN'),
            integrations=[FlaskIntegration()],
            traces_sample_rate=0.1,
            environment=app.config.get('ENV'),
            release=os.getenv('GIT_COMMIT', 'unknown')
        )

    # Production: trust the reverse proxy headers (HTTPS behind Nginx)
    if app.config.get('ENV') == 'production':
        from werkzeug.middleware.proxy_fix import ProxyFix
        app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_port=1)

    # Initialize database
    init_db(app)

    from otica.middleware import load_current_user

    @app.before_request
    def before_request_handler():
        """Load the authenticated user for each request."""
        load_current_user()

    # Error Handlers
    from otica.exceptions import OticaError

    @app.errorhandler(OticaError)
    def handle_otica_error(error):
        """Render application exceptions as JSON."""
        if error.status_code >= 500:
            app.logger.error(f"OticaError [{error.status_code}]: {error.message}")
        else:
            app.logger.warning(f"OticaError [{error.status_code}]: {error.message}")
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(404)
    def not_found_error(error):
        return jsonify({'status': 'error', 'message': 'Not Found'}), 404

    @app.errorhandler(405)
    def method_not_allowed(error):
        return jsonify({'status': 'error', 'message': 'Method Not Allowed'}), 405

    @app.errorhandler(Exception)
    def internal_error(error):
        if isinstance(error, HTTPException):
            return jsonify({'status': 'error', 'message': error.description}), error.code
        app.logger.exception(f"Unhandled Exception: {error}")
        return jsonify({'status': 'error', 'message': 'Internal Server Error'}), 500

    # Register blueprints
    from otica.blueprints.auth import auth_bp
    from otica.blueprints.sales import sales_bp
    from otica.blueprints.quotes import quotes_bp
    from otica.blueprints.financial import financial_bp
    from otica.blueprints.customers import customers_bp
    from otica.blueprints.products import products_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(sales_bp)
    app.register_blueprint(quotes_bp)
    app.register_blueprint(financial_bp)
    app.register_blueprint(customers_bp)
    app.register_blueprint(products_bp)

    # Register CLI commands
    from otica.cli_commands import init_cli_commands
    init_cli_commands(app)

    return app
