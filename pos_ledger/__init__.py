"""Flask application factory."""
import logging

from flask import Flask, jsonify

from pos_ledger.database import init_db


def configure_logging(app):
    """Set the root log level from LOG_LEVEL."""
    level = getattr(logging, str(app.config.get('LOG_LEVEL', 'INFO')).upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format='%(asctime)s %(levelname)s [%(name)s] %(message)s'
    )
    logging.getLogger('pos_ledger').setLevel(level)
    app.logger.setLevel(level)


def create_app(config_object='config.Config'):
    """Create and configure the Flask application."""
    app = Flask(__name__)
    app.config.from_object(config_object)

    configure_logging(app)

    # Initialize database
    database = init_db(app)
    if app.config.get('TESTING') or app.config.get('CREATE_TABLES_ON_START'):
        database.create_all()

    # Error Handlers
    from pos_ledger.exceptions import LedgerError

    @app.errorhandler(LedgerError)
    def handle_ledger_error(error):
        """Render ledger exceptions as JSON."""
        if error.status_code >= 500:
            app.logger.error(f"LedgerError [{error.status_code}]: {error.message}")
        else:
            app.logger.warning(f"LedgerError [{error.status_code}]: {error.message}")
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(404)
    def not_found_error(error):
        return jsonify({'status': 'error', 'message': 'Not Found'}), 404

    @app.errorhandler(405)
    def method_not_allowed(error):
        return jsonify({'status': 'error', 'message': 'Method Not Allowed'}), 405

    @app.errorhandler(500)
    def internal_error(error):
        app.logger.exception(f"Unhandled Exception: {error}")
        return jsonify({'status': 'error', 'message': 'Internal Server Error'}), 500

    # Register blueprints
    from pos_ledger.blueprints.sales import sales_bp
    from pos_ledger.blueprints.reports import reports_bp

    app.register_blueprint(sales_bp)
    app.register_blueprint(reports_bp)

    # Register CLI commands
    from pos_ledger.cli_commands import init_cli_commands
    init_cli_commands(app)

    return app
