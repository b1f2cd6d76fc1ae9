from flask import Blueprint, request, jsonify
from flask_login import login_required, current_user
from ..models.user import User
from ..utils.permissions import Operation, role_required
from ..errors import PermissionDenied
from werkzeug.exceptions import NotFound

users_bp = Blueprint('users', __name__)


@users_bp.route('/')
@role_required(Operation.LIST_USERS)
def index():
    role = request.args.get('role')
    query = User.query
    if role:
        query = query.filter_by(role=role)
    users = query.order_by(User.user_id).all()
    return jsonify({
        'success': True,
        'users': [user.to_dict() for user in users],
        'total': len(users)
    })


@users_bp.route('/<int:user_id>')
@login_required
def detail(user_id):
    if user_id != current_user.user_id and not current_user.can(Operation.LIST_USERS):
        raise PermissionDenied('You can only view your own account')
    user = User.query.filter_by(user_id=user_id).first()
    if user is None:
        raise NotFound('User not found')
    return jsonify({'success': True, 'user': user.to_dict(include_courses=True)})
