import os
from dotenv import load_dotenv
from datetime import timedelta

load_dotenv()


def _counter_start(name, default):
    return int(os.getenv(f'COUNTER_START_{name.upper()}', default))


class Config:
    # Flask Configuration
    SECRET_KEY = os.getenv('SECRET_KEY', 'dev')
    SQLALCHEMY_DATABASE_URI = os.getenv('DATABASE_URL', 'sqlite:///learnx.db')
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Debug Configuration
    DEBUG = os.getenv('FLASK_ENV') == 'development'
    TESTING = False

    # Sequence counters: the first id handed out is start + 1
    COUNTER_START = {
        'userId': _counter_start('userId', 1000),
        'courseId': _counter_start('courseId', 100),
        'enrollmentId': _counter_start('enrollmentId', 500),
        'serviceId': _counter_start('serviceId', 200),
        'adminId': _counter_start('adminId', 0),
    }
    COUNTER_DEFAULT_START = int(os.getenv('COUNTER_DEFAULT_START', 0))

    # Seed sample users/courses/services on first start
    SEED_SAMPLE_DATA = os.getenv('SEED_SAMPLE_DATA', 'False').lower() == 'true'

    # Pagination
    COURSES_PER_PAGE = 12
    SERVICES_PER_PAGE = 10

    # Logging Configuration
    LOGGING = {
        'version': 1,
        'disable_existing_loggers': False,
        'formatters': {
            'standard': {
                'format': '%(asctime)s [%(levelname)s] %(name)s: %(message)s'
            },
            'reconciliation': {
                'format': '%(asctime)s [RECONCILE] %(name)s: %(message)s'
            },
        },
        'handlers': {
            'console': {
                'class': 'logging.StreamHandler',
                'formatter': 'standard'
            },
            'reconciliation': {
                'class': 'logging.StreamHandler',
                'formatter': 'reconciliation'
            }
        },
        'loggers': {
            'learnx.reconciliation': {
                'level': 'WARNING',
                'handlers': ['reconciliation'],
                'propagate': False
            }
        },
        'root': {
            'level': os.getenv('LOG_LEVEL', 'INFO'),
            'handlers': ['console']
        }
    }

    # Session Configuration
    PERMANENT_SESSION_LIFETIME = timedelta(days=7)


class TestingConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    SEED_SAMPLE_DATA = False
    COUNTER_START = {
        'userId': 1000,
        'courseId': 100,
        'enrollmentId': 500,
        'serviceId': 200,
        'adminId': 0,
    }
    COUNTER_DEFAULT_START = 0
