from flask import Blueprint, jsonify, current_app
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from datetime import datetime
from .. import db

main_bp = Blueprint('main', __name__)


@main_bp.route('/')
def index():
    return jsonify({
        'message': 'Welcome to the LearnX API',
        'documentation': 'Visit /api for available endpoints',
        'status': 'Server is running'
    })


@main_bp.route('/api')
def api_info():
    return jsonify({
        'message': 'LearnX Backend API',
        'version': '1.0.0',
        'endpoints': {
            'auth': '/api/auth',
            'courses': '/api/courses',
            'enrollments': '/api/enrollments',
            'services': '/api/services',
            'users': '/api/users',
            'health': '/api/health'
        },
        'timestamp': datetime.utcnow().isoformat()
    })


@main_bp.route('/api/health')
def health():
    """Report whether the database answers"""
    try:
        db.session.execute(text('SELECT 1'))
        database = 'Connected'
        status = 200
    except SQLAlchemyError as e:
        current_app.logger.error(f"Health check failed: {str(e)}")
        database = 'Disconnected'
        status = 503

    return jsonify({
        'status': 'OK' if status == 200 else 'DEGRADED',
        'database': database,
        'environment': 'testing' if current_app.testing else ('development' if current_app.debug else 'production'),
        'timestamp': datetime.utcnow().isoformat()
    }), status
