from flask import Blueprint, request, jsonify
from flask_login import login_user, logout_user, login_required, current_user
from ..models.user import User
from ..utils.records import create_user, json_payload
from ..errors import ValidationError
from .. import login_manager
import logging

logger = logging.getLogger(__name__)
auth_bp = Blueprint('auth', __name__)

SELF_SERVICE_ROLES = ('student', 'instructor', 'provider')


@login_manager.unauthorized_handler
def unauthorized():
    return jsonify({
        'success': False,
        'code': 'UNAUTHORIZED',
        'message': 'Please log in to access this resource'
    }), 401


@auth_bp.route('/register', methods=['POST'])
def register():
    data = json_payload(request.get_json(silent=True))
    role = data.get('role', 'student')
    if role not in SELF_SERVICE_ROLES:
        raise ValidationError(f"role must be one of {', '.join(SELF_SERVICE_ROLES)}")

    logger.info(f"Received registration for {data.get('email')}")
    user = create_user(
        name=data.get('name'),
        email=data.get('email'),
        password=data.get('password'),
        role=role,
        profile=data.get('profile')
    )
    login_user(user)

    return jsonify({
        'success': True,
        'user': user.to_dict(),
        'message': 'Account created successfully'
    }), 201


@auth_bp.route('/login', methods=['POST'])
def login():
    data = json_payload(request.get_json(silent=True))
    email = data.get('email')
    password = data.get('password')

    if not isinstance(email, str) or not isinstance(password, str) or not email.strip() or not password:
        raise ValidationError('Please enter both email and password')
    email = email.strip().lower()

    user = User.query.filter_by(email=email).first()
    if not user or not user.check_password(password):
        logger.info(f"Failed login for {email}")
        return jsonify({
            'success': False,
            'code': 'INVALID_CREDENTIALS',
            'message': 'Invalid email or password'
        }), 401
    if not user.is_active:
        return jsonify({
            'success': False,
            'code': 'ACCOUNT_DISABLED',
            'message': 'This account has been disabled'
        }), 403

    login_user(user, remember=bool(data.get('remember')))
    return jsonify({'success': True, 'user': user.to_dict()})


@auth_bp.route('/logout', methods=['POST'])
@login_required
def logout():
    logout_user()
    return jsonify({'success': True, 'message': 'Logged out'})


@auth_bp.route('/me')
@login_required
def me():
    return jsonify({'success': True, 'user': current_user.to_dict(include_courses=True)})
