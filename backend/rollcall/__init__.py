"""Rollcall attendance service - Application Factory."""
import logging
import os
from flask import Flask, current_app, jsonify
from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from werkzeug.middleware.proxy_fix import ProxyFix

# Initialize extensions
db = SQLAlchemy()
migrate = Migrate()

def _default_limit():
    return current_app.config.get('RATELIMIT_DEFAULT', "200 per day, 50 per hour")

# Limits are read from the app config per request
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[_default_limit]
)

def create_app(config_name: str = None, clock=None, **config_overrides) -> Flask:
    """Application factory pattern."""
    app = Flask(__name__)

    # Load configuration
    from config import get_config
    config_class = get_config(config_name)
    app.config.from_object(config_class)
    app.config.update(config_overrides)

    # Client address comes from X-Forwarded-For behind a reverse proxy
    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1)

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)
    limiter.init_app(app)

    # Configure CORS
    CORS(app, origins=app.config.get('CORS_ORIGINS', ["*"]))

    # Setup logging
    setup_logging(app)

    # Register blueprints
    register_blueprints(app)

    # Register error handlers
    register_error_handlers(app)

    # Setup database
    setup_database(app)

    # Wire the attendance service
    setup_services(app, clock=clock)

    # Add CLI commands
    register_commands(app)

    # Add health check
    @app.route('/health')
    def health_check():
        return jsonify({
            'status': 'healthy',
            'service': 'Rollcall',
            'version': '1.0.0'
        })

    return app

def register_blueprints(app: Flask) -> None:
    """Register all application blueprints."""
    from rollcall.api.subjects import subjects_bp
    from rollcall.api.sessions import sessions_bp
    from rollcall.api.attendance import attendance_bp

    # Instructor
    app.register_blueprint(subjects_bp, url_prefix='/api/subjects')
    app.register_blueprint(sessions_bp, url_prefix='/api/sessions')

    # Student link
    app.register_blueprint(attendance_bp, url_prefix='/api/attendance')

def register_error_handlers(app: Flask) -> None:
    """Register error handlers."""
    from rollcall.utils.errors import AttendanceError
    from rollcall.utils.helpers import handle_error, error_response
    from werkzeug.exceptions import HTTPException

    @app.errorhandler(AttendanceError)
    def attendance_error(error):
        return error_response(error.message, error.status_code, **error.details())

    @app.errorhandler(404)
    def not_found(error):
        return handle_error(error, 404)

    @app.errorhandler(429)
    def too_many_requests(error):
        return error_response(
            "Too many attendance attempts from this network. Wait a minute and try again.",
            429
        )

    @app.errorhandler(500)
    def internal_error(error):
        db.session.rollback()
        return handle_error(error, 500)

    @app.errorhandler(HTTPException)
    def handle_exception(e):
        return handle_error(e, e.code)

def setup_logging(app: Flask) -> None:
    """Setup application logging."""
    level = getattr(logging, app.config.get('LOG_LEVEL', 'INFO'))
    package_logger = logging.getLogger('rollcall')
    package_logger.setLevel(level)

    # The scheduler logs every job run at INFO
    logging.getLogger('apscheduler').setLevel(logging.WARNING)

    if not app.debug and not app.testing:
        log_file = app.config.get('LOG_FILE', 'logs/app.log')
        log_dir = os.path.dirname(log_file)
        if log_dir and not os.path.exists(log_dir):
            os.makedirs(log_dir)

        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(logging.Formatter(
            '%(asctime)s %(levelname)s: %(message)s [in %(pathname)s:%(lineno)d]'
        ))
        file_handler.setLevel(logging.INFO)
        app.logger.addHandler(file_handler)
        package_logger.addHandler(file_handler)

        app.logger.setLevel(logging.INFO)
        app.logger.info('Rollcall startup')

def setup_database(app: Flask) -> None:
    """Setup database connections."""
    with app.app_context():
        # Import all models
        from rollcall.models import Subject, ClassSession, AttendanceRecord

def setup_services(app: Flask, clock=None) -> None:
    """Build the attendance service and its collaborators for this app."""
    from rollcall.services.attendance_service import AttendanceService
    from rollcall.services.network_service import NetworkLookupService
    from rollcall.services.scheduler_service import SessionScheduler
    from rollcall.services.session_store import SessionStore

    store = SessionStore()
    scheduler = SessionScheduler(store, app=app, clock=clock)
    lookup = NetworkLookupService(
        url_template=app.config['NETWORK_LOOKUP_URL'],
        timeout=app.config['NETWORK_LOOKUP_TIMEOUT'],
        enabled=app.config['NETWORK_LOOKUP_ENABLED']
    )
    service = AttendanceService(
        store=store,
        scheduler=scheduler,
        lookup=lookup,
        clock=clock,
        public_base_url=app.config['PUBLIC_BASE_URL'],
        strict_address_match=app.config['PROXY_STRICT_ADDRESS_MATCH'],
        token_retry_delay=app.config['TOKEN_RETRY_DELAY_SECONDS']
    )
    scheduler.add_observer(
        lambda count: app.logger.info(f'{count} expired session(s) auto-closed')
    )
    app.extensions['rollcall'] = service

    # The reloader imports the app twice; only the serving process schedules
    if app.config.get('SCHEDULER_ENABLED') and (
            not app.debug or os.environ.get('WERKZEUG_RUN_MAIN') == 'true'):
        scheduler.start()

def register_commands(app: Flask) -> None:
    """Register CLI commands."""
    import click

    @app.cli.command('create-db')
    @click.option('--drop', is_flag=True, help='Drop existing tables')
    def create_db(drop):
        """Create database tables."""
        if drop:
            db.drop_all()
            click.echo('Dropped all tables.')

        db.create_all()
        click.echo('Created all tables.')

    @app.cli.command()
    def sweep():
        """Close every session whose auto-close deadline has passed."""
        from rollcall.utils.helpers import get_attendance_service

        closed = get_attendance_service().run_sweep_once()
        click.echo(f'Closed {closed} expired session(s).')

    @app.cli.command('seed-demo')
    def seed_demo():
        """Create a demo subject with one open session."""
        from datetime import datetime
        from rollcall.utils.helpers import get_attendance_service

        service = get_attendance_service()
        now = datetime.now()
        try:
            subject = service.create_subject('Demo Subject', 'Created by seed-demo')
            session = service.create_session(
                subject.id,
                now.date().isoformat(),
                now.strftime('%H:%M'),
                duration_minutes=60
            )
            click.echo(f'Attendance link: {service.issue_session_link(session)}')
        except Exception as e:
            db.session.rollback()
            click.echo(f'Error seeding database: {str(e)}')
