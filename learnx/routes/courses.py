from flask import Blueprint, request, jsonify, current_app
from flask_login import current_user
from sqlalchemy import or_
from ..models.course import Course, available_spots, is_full
from ..models.enrollment import Enrollment
from ..utils import enrollment_guard
from ..utils.permissions import Operation, role_required
from ..utils.records import create_course, json_payload
from ..utils.seed import seed_sample_data
from ..errors import CourseNotFound, PermissionDenied, ValidationError
import logging

logger = logging.getLogger(__name__)

courses_bp = Blueprint('courses', __name__)

SORT_OPTIONS = {
    'popularity': Course.students_enrolled.desc(),
    'rating': Course.rating.desc(),
    'price-low': Course.price.asc(),
    'price-high': Course.price.desc(),
    'newest': Course.created_at.desc(),
}


def _get_course_or_404(course_id):
    course = Course.query.filter_by(course_id=course_id).first()
    if course is None:
        raise CourseNotFound(f'Course {course_id} not found')
    return course


def _target_user_id(data):
    """Admins may act on behalf of another user; everyone else acts as themselves"""
    user_id = data.get('userId')
    if user_id is None or int(user_id) == current_user.user_id:
        return current_user.user_id
    if not current_user.can(Operation.MANAGE_ENROLLMENTS):
        raise PermissionDenied('You can only enroll yourself')
    return int(user_id)


@courses_bp.route('/')
def index():
    """List published courses with filters, sorting and pagination"""
    category = request.args.get('category')
    level = request.args.get('level')
    teaching_mode = request.args.get('teachingMode')
    search = request.args.get('search')
    max_price = request.args.get('maxPrice', type=float)
    sort = request.args.get('sort', 'popularity')
    page = request.args.get('page', 1, type=int)
    limit = request.args.get('limit', current_app.config['COURSES_PER_PAGE'], type=int)

    query = Course.query.filter_by(is_published=True)
    if category and category != 'all':
        query = query.filter(Course.category.in_(category.split(',')))
    if level and level != 'all':
        query = query.filter(Course.level == level)
    if teaching_mode and teaching_mode != 'all':
        query = query.filter(Course.teaching_mode == teaching_mode)
    if max_price is not None:
        query = query.filter(Course.price <= max_price)
    if search:
        pattern = f'%{search}%'
        query = query.filter(or_(
            Course.title.ilike(pattern),
            Course.instructor.ilike(pattern),
            Course.description.ilike(pattern)
        ))

    query = query.order_by(SORT_OPTIONS.get(sort, SORT_OPTIONS['popularity']), Course.course_id)
    pagination = query.paginate(page=page, per_page=limit, error_out=False)
    logger.info(f"Successfully fetched {len(pagination.items)} courses")

    return jsonify({
        'success': True,
        'courses': [course.to_dict() for course in pagination.items],
        'total': pagination.total,
        'page': pagination.page,
        'pages': pagination.pages,
        'filters': {
            'category': category,
            'level': level,
            'teachingMode': teaching_mode,
            'search': search,
            'sort': sort,
            'maxPrice': max_price
        }
    })


@courses_bp.route('/<int:course_id>')
def detail(course_id):
    course = _get_course_or_404(course_id)
    return jsonify({'success': True, 'course': course.to_dict()})


@courses_bp.route('/<int:course_id>/availability')
def availability(course_id):
    course = _get_course_or_404(course_id)
    return jsonify({
        'success': True,
        'courseId': course.course_id,
        'teachingMode': course.teaching_mode,
        'availableSpots': available_spots(course),
        'isFull': is_full(course)
    })


@courses_bp.route('/', methods=['POST'])
@role_required(Operation.CREATE_COURSE)
def create():
    data = json_payload(request.get_json(silent=True))
    course = create_course(data, instructor=current_user)
    return jsonify({
        'success': True,
        'course': course.to_dict(),
        'message': 'Course created'
    }), 201


@courses_bp.route('/<int:course_id>/enroll', methods=['POST'])
@role_required(Operation.ENROLL)
def enroll(course_id):
    """Enroll in a course"""
    data = json_payload(request.get_json(silent=True))
    try:
        user_id = _target_user_id(data)
    except (TypeError, ValueError):
        raise ValidationError('userId must be a number')

    enrollment = enrollment_guard.enroll(
        course_id,
        user_id,
        preferred_mode=data.get('preferredMode', 'online'),
        payment_method=data.get('paymentMethod', 'card')
    )
    return jsonify({
        'success': True,
        'enrollment': enrollment.to_dict(),
        'message': 'Successfully enrolled in course'
    }), 201


@courses_bp.route('/<int:course_id>/waitlist', methods=['POST'])
@role_required(Operation.ENROLL)
def waitlist(course_id):
    data = json_payload(request.get_json(silent=True))
    try:
        user_id = _target_user_id(data)
    except (TypeError, ValueError):
        raise ValidationError('userId must be a number')

    enrollment = enrollment_guard.join_waitlist(course_id, user_id)
    return jsonify({
        'success': True,
        'enrollment': enrollment.to_dict(),
        'message': 'Added to the waitlist'
    }), 201


@courses_bp.route('/<int:course_id>/enrollments')
@role_required(Operation.VIEW_COURSE_ENROLLMENTS)
def enrollments(course_id):
    course = _get_course_or_404(course_id)
    if not current_user.can(Operation.MANAGE_ENROLLMENTS) and course.instructor_id != current_user.user_id:
        raise PermissionDenied('Only the course instructor can view its enrollments')

    status = request.args.get('status')
    query = Enrollment.query.filter_by(course_id=course_id)
    if status:
        query = query.filter_by(status=status)
    records = query.order_by(Enrollment.enrollment_id).all()
    return jsonify({
        'success': True,
        'courseId': course_id,
        'enrollments': [record.to_dict() for record in records],
        'total': len(records)
    })


@courses_bp.route('/seed', methods=['POST'])
@role_required(Operation.SEED_DATA)
def seed():
    created = seed_sample_data(only_if_empty=False)
    return jsonify({
        'success': True,
        'message': 'Sample data seeded successfully',
        'created': created
    })
