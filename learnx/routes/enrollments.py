from flask import Blueprint, request, jsonify
from flask_login import current_user
from datetime import datetime
from ..models.course import Course
from ..models.enrollment import Enrollment
from ..utils import enrollment_guard
from ..utils.permissions import Operation, role_required
from ..utils.records import json_payload
from ..errors import EnrollmentNotFound, PermissionDenied, ValidationError
import logging

logger = logging.getLogger(__name__)

enrollments_bp = Blueprint('enrollments', __name__)


def _get_enrollment_or_404(enrollment_id):
    enrollment = Enrollment.query.filter_by(enrollment_id=enrollment_id).first()
    if enrollment is None:
        raise EnrollmentNotFound(f'Enrollment {enrollment_id} not found')
    return enrollment


def _teaches(enrollment):
    course = Course.query.filter_by(course_id=enrollment.course_id).first()
    return course is not None and course.instructor_id == current_user.user_id


def _check_access(enrollment, owner_operation, staff_operation):
    """Owners act through owner_operation, instructors of the course and admins through staff_operation"""
    if enrollment.user_id == current_user.user_id and current_user.can(owner_operation):
        return
    if current_user.can(Operation.MANAGE_ENROLLMENTS):
        return
    if current_user.can(staff_operation) and _teaches(enrollment):
        return
    raise PermissionDenied('You do not have access to this enrollment')


def _parse_date(value):
    if not value:
        return datetime.utcnow()
    try:
        return datetime.fromisoformat(value)
    except (TypeError, ValueError):
        raise ValidationError('sessionDate must be an ISO 8601 date')


@enrollments_bp.route('/me')
@role_required(Operation.VIEW_OWN_ENROLLMENTS)
def mine():
    records = Enrollment.query.filter_by(user_id=current_user.user_id).order_by(Enrollment.enrolled_at.desc()).all()
    return jsonify({
        'success': True,
        'enrollments': [record.to_dict() for record in records],
        'total': len(records)
    })


@enrollments_bp.route('/<int:enrollment_id>')
@role_required(Operation.VIEW_OWN_ENROLLMENTS)
def detail(enrollment_id):
    enrollment = _get_enrollment_or_404(enrollment_id)
    _check_access(enrollment, Operation.VIEW_OWN_ENROLLMENTS, Operation.VIEW_COURSE_ENROLLMENTS)
    return jsonify({'success': True, 'enrollment': enrollment.to_dict(include_attendance=True)})


@enrollments_bp.route('/<int:enrollment_id>/cancel', methods=['POST'])
@role_required(Operation.CANCEL_OWN_ENROLLMENT)
def cancel(enrollment_id):
    enrollment = _get_enrollment_or_404(enrollment_id)
    _check_access(enrollment, Operation.CANCEL_OWN_ENROLLMENT, Operation.MANAGE_ENROLLMENTS)
    enrollment = enrollment_guard.cancel_enrollment(enrollment_id)
    return jsonify({
        'success': True,
        'enrollment': enrollment.to_dict(),
        'message': 'Enrollment cancelled'
    })


@enrollments_bp.route('/<int:enrollment_id>/switch-online', methods=['POST'])
@role_required(Operation.ENROLL)
def switch_online(enrollment_id):
    """Take up online delivery instead of (or while waiting for) a classroom place"""
    enrollment = _get_enrollment_or_404(enrollment_id)
    _check_access(enrollment, Operation.ENROLL, Operation.MANAGE_ENROLLMENTS)
    enrollment = enrollment_guard.switch_to_online(enrollment_id)
    return jsonify({
        'success': True,
        'enrollment': enrollment.to_dict(),
        'message': 'Enrollment switched to online'
    })


@enrollments_bp.route('/<int:enrollment_id>/attendance', methods=['POST'])
@role_required(Operation.MARK_ATTENDANCE)
def attendance(enrollment_id):
    enrollment = _get_enrollment_or_404(enrollment_id)
    if not current_user.can(Operation.MANAGE_ENROLLMENTS) and not _teaches(enrollment):
        raise PermissionDenied('Only the course instructor can mark attendance')

    data = json_payload(request.get_json(silent=True))
    present = data.get('present', True)
    if not isinstance(present, bool):
        raise ValidationError('present must be true or false')
    notes = data.get('notes') or ''
    if not isinstance(notes, str):
        raise ValidationError('notes must be a string')

    record = enrollment_guard.mark_attendance(
        enrollment_id,
        _parse_date(data.get('sessionDate')),
        present=present,
        notes=notes,
        session_type=data.get('sessionType', 'in-person')
    )
    enrollment = _get_enrollment_or_404(enrollment_id)
    return jsonify({
        'success': True,
        'record': record.to_dict(),
        'attendancePercentage': enrollment.attendance_percentage()
    }), 201


@enrollments_bp.route('/<int:enrollment_id>/progress', methods=['PUT'])
@role_required(Operation.UPDATE_PROGRESS)
def progress(enrollment_id):
    enrollment = _get_enrollment_or_404(enrollment_id)
    if not current_user.can(Operation.MANAGE_ENROLLMENTS) and not _teaches(enrollment):
        raise PermissionDenied('Only the course instructor can update progress')

    data = json_payload(request.get_json(silent=True))
    enrollment = enrollment_guard.update_progress(enrollment_id, data.get('progress'))
    return jsonify({'success': True, 'enrollment': enrollment.to_dict()})
