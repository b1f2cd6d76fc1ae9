from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_login import LoginManager
from flask_migrate import Migrate
from .config import Config
import logging.config

db = SQLAlchemy()
login_manager = LoginManager()
migrate = Migrate()


def create_app(config_class=Config):
    app = Flask(__name__)
    app.config.from_object(config_class)

    # Initialize logging
    logging.config.dictConfig(app.config['LOGGING'])

    # Initialize extensions
    db.init_app(app)
    login_manager.init_app(app)
    migrate.init_app(app, db)

    from .errors import register_error_handlers
    register_error_handlers(app)

    # Register blueprints
    from .routes.main import main_bp
    from .routes.auth import auth_bp
    from .routes.courses import courses_bp
    from .routes.enrollments import enrollments_bp
    from .routes.services import services_bp
    from .routes.users import users_bp

    app.register_blueprint(main_bp)
    app.register_blueprint(auth_bp, url_prefix='/api/auth')
    app.register_blueprint(courses_bp, url_prefix='/api/courses')
    app.register_blueprint(enrollments_bp, url_prefix='/api/enrollments')
    app.register_blueprint(services_bp, url_prefix='/api/services')
    app.register_blueprint(users_bp, url_prefix='/api/users')

    # Create database tables and make sure every sequence exists
    with app.app_context():
        from .models import counter, user, course, enrollment, service  # noqa: F401
        db.create_all()
        counter.initialize_counters()

        if app.config.get('SEED_SAMPLE_DATA'):
            from .utils.seed import seed_sample_data
            seed_sample_data(only_if_empty=True)

    return app
