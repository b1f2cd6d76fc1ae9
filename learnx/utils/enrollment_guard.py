"""Enrollment capacity guard.

Decides whether an enrollment may go ahead and applies its writes:

    Requested -> Accepted | Rejected-Duplicate | Rejected-Full

Face-to-face places are claimed with one conditional UPDATE
(``current_enrollment < max_students``), so two requests racing for the
last seat cannot both win. The enrollment row, the course counters and
the user's course reference are written in a single transaction.
"""
from datetime import datetime
from sqlalchemy import update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from .. import db
from ..errors import (
    CourseNotFound, DuplicateEnrollment, CourseFull, EnrollmentNotFound,
    InvalidEnrollmentState, StorageError, ValidationError
)
from ..models.counter import next_value
from ..models.course import Course, available_spots, is_full, UNLIMITED
from ..models.enrollment import Enrollment, SESSION_TYPES
from ..models.user import User, UserCourse
from .permissions import ENROLLMENT_MODES
import logging

logger = logging.getLogger(__name__)
reconcile_logger = logging.getLogger('learnx.reconciliation')

__all__ = [
    'enroll', 'join_waitlist', 'cancel_enrollment', 'switch_to_online',
    'mark_attendance', 'update_progress', 'available_spots', 'is_full', 'UNLIMITED'
]


def _takes_seat(course, preferred_mode):
    return preferred_mode != 'online' and course.teaching_mode != 'online'


def _claim_seat(course_id):
    stmt = (
        update(Course)
        .where(
            Course.course_id == course_id,
            Course.current_enrollment < Course.max_students
        )
        .values(
            current_enrollment=Course.current_enrollment + 1,
            students_enrolled=Course.students_enrolled + 1
        )
        .execution_options(synchronize_session=False)
    )
    return db.session.execute(stmt).rowcount == 1


def _count_student(course_id):
    stmt = (
        update(Course)
        .where(Course.course_id == course_id)
        .values(students_enrolled=Course.students_enrolled + 1)
        .execution_options(synchronize_session=False)
    )
    db.session.execute(stmt)


def _decrement(course_id, column):
    # Counters never drop below zero
    stmt = (
        update(Course)
        .where(Course.course_id == course_id, column > 0)
        .values({column: column - 1})
        .execution_options(synchronize_session=False)
    )
    db.session.execute(stmt)


def _release_seat(course_id):
    _decrement(course_id, Course.current_enrollment)


def _get_course(course_id):
    course = Course.query.filter_by(course_id=course_id).first()
    if course is None:
        raise CourseNotFound(f'Course {course_id} not found')
    return course


def _get_user(user_id):
    user = User.query.filter_by(user_id=user_id).first()
    if user is None:
        raise ValidationError(f'User {user_id} not found')
    return user


def _get_enrollment(enrollment_id):
    enrollment = Enrollment.query.filter_by(enrollment_id=enrollment_id).first()
    if enrollment is None:
        raise EnrollmentNotFound(f'Enrollment {enrollment_id} not found')
    return enrollment


def _ensure_not_enrolled(course_id, user_id):
    existing = Enrollment.query.filter_by(course_id=course_id, user_id=user_id).first()
    if existing is not None:
        raise DuplicateEnrollment(
            f'User {user_id} already has a {existing.status} enrollment in course {course_id}',
            enrollmentId=existing.enrollment_id
        )


# Unique (course, user) pairs; PostgreSQL names the constraint, SQLite lists its columns
DUPLICATE_PAIR_MARKERS = (
    'uq_enrollments_course_user',
    'uq_user_courses_user_course',
    'enrollments.course_id, enrollments.user_id',
    'user_courses.user_id, user_courses.course_id',
)


def _is_duplicate_pair(error):
    message = str(error.orig)
    return any(marker in message for marker in DUPLICATE_PAIR_MARKERS)


def _integrity_failure(error, action, **context):
    """Map a failed unique constraint to DuplicateEnrollment, anything else to StorageError"""
    if _is_duplicate_pair(error):
        return DuplicateEnrollment(
            f"User {context.get('user_id')} is already enrolled in course {context.get('course_id')}"
        )
    reconcile_logger.error(f"{action} hit an unexpected constraint, rolled back: {context} ({str(error.orig)})")
    return StorageError(f'Could not complete {action}')


def _commit(action, **context):
    """Commit the current transaction, rolling back and logging for reconciliation on failure"""
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise
    except SQLAlchemyError as e:
        db.session.rollback()
        reconcile_logger.error(f"{action} failed after partial writes, rolled back: {context} ({str(e)})")
        raise StorageError(f'Could not complete {action}') from e


def enroll(course_id, user_id, preferred_mode='online', payment_method='card'):
    """Enroll a user in a course, enforcing face-to-face capacity.

    Raises CourseNotFound, DuplicateEnrollment or CourseFull for expected
    rejections and StorageError when the database fails.
    """
    if preferred_mode not in ENROLLMENT_MODES:
        raise ValidationError(f"preferredMode must be one of {', '.join(ENROLLMENT_MODES)}")
    if not isinstance(payment_method, str) or not payment_method:
        raise ValidationError('paymentMethod must be a string')

    try:
        course = _get_course(course_id)
        user = _get_user(user_id)
        _ensure_not_enrolled(course_id, user_id)

        seat = _takes_seat(course, preferred_mode)
        if seat:
            if not _claim_seat(course_id):
                db.session.rollback()
                logger.info(f"Course {course_id} is full, rejected face-to-face enrollment for user {user_id}")
                raise CourseFull(
                    f'Course {course_id} has no face-to-face places left',
                    availableSpots=0,
                    alternatives=['online', 'waitlist']
                )
        else:
            _count_student(course_id)

        enrollment = Enrollment(
            enrollment_id=next_value('enrollmentId'),
            course_id=course_id,
            user_id=user_id,
            user_email=user.email,
            preferred_mode=preferred_mode,
            status='active',
            final_price=course.price,
            payment_method=payment_method,
            holds_seat=seat
        )
        db.session.add(enrollment)
        user.enrolled_courses.append(UserCourse(
            course_id=course_id,
            preferred_mode=preferred_mode
        ))
        _commit('enrollment', course_id=course_id, user_id=user_id,
                enrollment_id=enrollment.enrollment_id)
    except IntegrityError as e:
        db.session.rollback()
        # Lost a race with a concurrent request for the same pair, or a sequence collision
        logger.info(f"Constraint failure enrolling user {user_id} in course {course_id}")
        raise _integrity_failure(e, 'enrollment', course_id=course_id, user_id=user_id) from e
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error(f"Error enrolling user {user_id} in course {course_id}: {str(e)}")
        raise StorageError('Could not enroll in course') from e

    logger.info(f"User {user_id} enrolled in course {course_id} ({preferred_mode}) as enrollment {enrollment.enrollment_id}")
    return enrollment


def join_waitlist(course_id, user_id):
    """Queue a user for a face-to-face place on a full course"""
    try:
        course = _get_course(course_id)
        user = _get_user(user_id)
        _ensure_not_enrolled(course_id, user_id)
        if not is_full(course):
            raise InvalidEnrollmentState(
                f'Course {course_id} still has places, enroll instead',
                availableSpots=available_spots(course)
            )

        enrollment = Enrollment(
            enrollment_id=next_value('enrollmentId'),
            course_id=course_id,
            user_id=user_id,
            user_email=user.email,
            preferred_mode='face-to-face',
            status='waitlisted',
            final_price=course.price,
            holds_seat=False
        )
        db.session.add(enrollment)
        _commit('waitlist', course_id=course_id, user_id=user_id)
    except IntegrityError as e:
        db.session.rollback()
        raise _integrity_failure(e, 'waitlist', course_id=course_id, user_id=user_id) from e
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error(f"Error adding user {user_id} to waitlist for course {course_id}: {str(e)}")
        raise StorageError('Could not join waitlist') from e

    logger.info(f"User {user_id} waitlisted for course {course_id}")
    return enrollment


def cancel_enrollment(enrollment_id):
    """Cancel an enrollment.

    An active enrollment gives back its face-to-face seat (if it held one),
    is removed from the course's student count and from the user's course
    list. A waitlisted entry only changes status. The row is kept.
    """
    try:
        enrollment = _get_enrollment(enrollment_id)
        if enrollment.status not in ('active', 'waitlisted'):
            raise InvalidEnrollmentState(f'Cannot cancel a {enrollment.status} enrollment')

        if enrollment.status == 'active':
            _decrement(enrollment.course_id, Course.students_enrolled)
            if enrollment.holds_seat:
                _release_seat(enrollment.course_id)
            _drop_course_reference(enrollment.user_id, enrollment.course_id)

        enrollment.status = 'cancelled'
        enrollment.holds_seat = False
        _commit('cancellation', enrollment_id=enrollment_id, course_id=enrollment.course_id)
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error(f"Error cancelling enrollment {enrollment_id}: {str(e)}")
        raise StorageError('Could not cancel enrollment') from e

    logger.info(f"Enrollment {enrollment_id} cancelled")
    return enrollment


def switch_to_online(enrollment_id):
    """Move an enrollment to online delivery.

    An active face-to-face enrollment gives its seat back. A waitlisted
    entry becomes an active online enrollment.
    """
    try:
        enrollment = _get_enrollment(enrollment_id)
        if enrollment.status not in ('active', 'waitlisted'):
            raise InvalidEnrollmentState(f'Cannot switch a {enrollment.status} enrollment to online')
        if enrollment.status == 'active' and enrollment.preferred_mode == 'online':
            raise InvalidEnrollmentState('Enrollment is already online')

        if enrollment.status == 'waitlisted':
            _count_student(enrollment.course_id)
            user = _get_user(enrollment.user_id)
            user.enrolled_courses.append(UserCourse(
                course_id=enrollment.course_id,
                preferred_mode='online'
            ))
            enrollment.status = 'active'
        else:
            if enrollment.holds_seat:
                _release_seat(enrollment.course_id)
            ref = _course_reference(enrollment.user_id, enrollment.course_id)
            if ref is not None:
                ref.preferred_mode = 'online'

        enrollment.preferred_mode = 'online'
        enrollment.holds_seat = False
        _commit('switch to online', enrollment_id=enrollment_id, course_id=enrollment.course_id)
    except IntegrityError as e:
        db.session.rollback()
        raise _integrity_failure(
            e, 'switch to online', course_id=enrollment.course_id, user_id=enrollment.user_id
        ) from e
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error(f"Error switching enrollment {enrollment_id} to online: {str(e)}")
        raise StorageError('Could not switch enrollment to online') from e

    logger.info(f"Enrollment {enrollment_id} switched to online delivery")
    return enrollment


def mark_attendance(enrollment_id, session_date, present=True, notes='', session_type='in-person'):
    if session_type not in SESSION_TYPES:
        raise ValidationError(f"sessionType must be one of {', '.join(SESSION_TYPES)}")
    try:
        enrollment = _get_enrollment(enrollment_id)
        if enrollment.status != 'active':
            raise InvalidEnrollmentState(f'Cannot mark attendance on a {enrollment.status} enrollment')
        record = enrollment.mark_attendance(session_date, present=present, notes=notes, session_type=session_type)
        enrollment.last_accessed = datetime.utcnow()
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error(f"Error marking attendance for enrollment {enrollment_id}: {str(e)}")
        raise StorageError('Could not mark attendance') from e
    return record


def update_progress(enrollment_id, progress):
    """Set progress (0-100); reaching 100 completes the enrollment"""
    if isinstance(progress, bool) or not isinstance(progress, int) or not 0 <= progress <= 100:
        raise ValidationError('progress must be an integer between 0 and 100')
    try:
        enrollment = _get_enrollment(enrollment_id)
        if enrollment.status != 'active':
            raise InvalidEnrollmentState(f'Cannot update progress on a {enrollment.status} enrollment')

        enrollment.progress = progress
        enrollment.last_accessed = datetime.utcnow()
        ref = _course_reference(enrollment.user_id, enrollment.course_id)
        if ref is not None:
            ref.progress = progress
        if progress == 100:
            enrollment.status = 'completed'
            if ref is not None:
                ref.completed = True
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error(f"Error updating progress for enrollment {enrollment_id}: {str(e)}")
        raise StorageError('Could not update progress') from e

    if enrollment.status == 'completed':
        logger.info(f"Enrollment {enrollment_id} completed")
    return enrollment


def _course_reference(user_id, course_id):
    return UserCourse.query.filter_by(user_id=user_id, course_id=course_id).first()


def _drop_course_reference(user_id, course_id):
    ref = _course_reference(user_id, course_id)
    if ref is not None:
        db.session.delete(ref)
