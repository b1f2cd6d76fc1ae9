from enum import Enum
from functools import wraps
from flask_login import current_user, login_required
from ..errors import PermissionDenied

TEACHING_MODES = ('online', 'face-to-face', 'hybrid')
ENROLLMENT_MODES = ('online', 'face-to-face')
TEACHING_PREFERENCES = ('online', 'face-to-face', 'both')


class Role(str, Enum):
    STUDENT = 'student'
    INSTRUCTOR = 'instructor'
    ADMIN = 'admin'
    PROVIDER = 'provider'


class Operation(str, Enum):
    ENROLL = 'enroll'
    VIEW_OWN_ENROLLMENTS = 'view_own_enrollments'
    CANCEL_OWN_ENROLLMENT = 'cancel_own_enrollment'
    CREATE_COURSE = 'create_course'
    MARK_ATTENDANCE = 'mark_attendance'
    UPDATE_PROGRESS = 'update_progress'
    VIEW_COURSE_ENROLLMENTS = 'view_course_enrollments'
    MANAGE_ENROLLMENTS = 'manage_enrollments'
    CREATE_SERVICE = 'create_service'
    LIST_USERS = 'list_users'
    SEED_DATA = 'seed_data'


_STUDENT_OPERATIONS = frozenset({
    Operation.ENROLL,
    Operation.VIEW_OWN_ENROLLMENTS,
    Operation.CANCEL_OWN_ENROLLMENT,
})

PERMISSIONS = {
    Role.STUDENT: _STUDENT_OPERATIONS,
    Role.INSTRUCTOR: _STUDENT_OPERATIONS | {
        Operation.CREATE_COURSE,
        Operation.MARK_ATTENDANCE,
        Operation.UPDATE_PROGRESS,
        Operation.VIEW_COURSE_ENROLLMENTS,
    },
    Role.PROVIDER: frozenset({
        Operation.CREATE_SERVICE,
        Operation.VIEW_OWN_ENROLLMENTS,
    }),
    Role.ADMIN: frozenset(Operation),
}


def can(role, operation):
    return Operation(operation) in PERMISSIONS.get(Role(role), frozenset())


def role_required(operation):
    """Require a logged-in user whose role permits the operation"""
    def decorator(view):
        @wraps(view)
        @login_required
        def wrapped(*args, **kwargs):
            if not current_user.can(operation):
                raise PermissionDenied(f"Role '{current_user.role}' may not {Operation(operation).value.replace('_', ' ')}")
            return view(*args, **kwargs)
        return wrapped
    return decorator
