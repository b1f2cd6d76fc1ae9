from flask import Blueprint, request, jsonify, current_app
from flask_login import current_user
from ..models.service import Service
from ..utils.permissions import Operation, role_required
from ..utils.records import create_service, json_payload
from .. import db
from werkzeug.exceptions import NotFound
import logging

logger = logging.getLogger(__name__)

services_bp = Blueprint('services', __name__)


@services_bp.route('/')
def index():
    """List services with optional filtering"""
    category = request.args.get('category')
    service_type = request.args.get('serviceType')
    page = request.args.get('page', 1, type=int)
    limit = request.args.get('limit', current_app.config['SERVICES_PER_PAGE'], type=int)

    query = Service.query
    if category:
        query = query.filter_by(category=category)
    if service_type:
        query = query.filter_by(service_type=service_type)

    pagination = query.order_by(Service.rating.desc(), Service.created_at.desc()).paginate(
        page=page, per_page=limit, error_out=False
    )
    return jsonify({
        'success': True,
        'services': [service.to_dict() for service in pagination.items],
        'pagination': {
            'page': pagination.page,
            'limit': limit,
            'total': pagination.total,
            'pages': pagination.pages
        }
    })


@services_bp.route('/<int:service_id>')
def detail(service_id):
    service = Service.query.filter_by(service_id=service_id).first()
    if service is None:
        raise NotFound('Service not found')
    return jsonify({'success': True, 'service': service.to_dict()})


@services_bp.route('/provider/<int:provider_id>')
def by_provider(provider_id):
    services = Service.query.filter_by(provider_id=provider_id).order_by(Service.service_id).all()
    return jsonify({
        'success': True,
        'services': [service.to_dict() for service in services]
    })


@services_bp.route('/categories/all')
def categories():
    rows = db.session.execute(db.select(Service.category).distinct().order_by(Service.category)).scalars()
    return jsonify({'success': True, 'categories': list(rows)})


@services_bp.route('/', methods=['POST'])
@role_required(Operation.CREATE_SERVICE)
def create():
    data = json_payload(request.get_json(silent=True))
    service = create_service(data, provider=current_user)
    return jsonify({
        'success': True,
        'service': service.to_dict(),
        'message': 'Service created'
    }), 201
