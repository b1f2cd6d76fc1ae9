from flask import jsonify
from werkzeug.exceptions import HTTPException
import logging

logger = logging.getLogger(__name__)


class LearnXError(Exception):
    """Base class for errors surfaced to API callers"""
    status_code = 500
    code = 'INTERNAL_ERROR'
    message = 'Internal server error'

    def __init__(self, message=None, **payload):
        super().__init__(message or self.message)
        self.message = message or self.message
        self.payload = payload

    def to_dict(self):
        body = {
            'success': False,
            'code': self.code,
            'message': self.message,
        }
        body.update(self.payload)
        return body


class StorageError(LearnXError):
    """The persistent store could not be reached or refused the write"""
    status_code = 500
    code = 'STORAGE_ERROR'
    message = 'Storage unavailable'


class ValidationError(LearnXError):
    status_code = 400
    code = 'VALIDATION_ERROR'
    message = 'Invalid request'


class PermissionDenied(LearnXError):
    status_code = 403
    code = 'PERMISSION_DENIED'
    message = 'You are not allowed to perform this action'


class EnrollmentError(LearnXError):
    """Expected business-rule rejection of an enrollment request"""
    status_code = 400
    code = 'ENROLLMENT_REJECTED'


class CourseNotFound(EnrollmentError):
    status_code = 404
    code = 'COURSE_NOT_FOUND'
    message = 'Course not found'


class DuplicateEnrollment(EnrollmentError):
    status_code = 409
    code = 'DUPLICATE_ENROLLMENT'
    message = 'Already enrolled in this course'


class CourseFull(EnrollmentError):
    status_code = 409
    code = 'COURSE_FULL'
    message = 'No face-to-face places left on this course'


class EnrollmentNotFound(EnrollmentError):
    status_code = 404
    code = 'ENROLLMENT_NOT_FOUND'
    message = 'Enrollment not found'


class InvalidEnrollmentState(EnrollmentError):
    status_code = 409
    code = 'INVALID_ENROLLMENT_STATE'
    message = 'Enrollment cannot change from its current status'


def register_error_handlers(app):
    @app.errorhandler(LearnXError)
    def handle_learnx_error(error):
        if error.status_code >= 500:
            logger.error(f"{error.code}: {error.message}")
        else:
            logger.info(f"Rejected request with {error.code}: {error.message}")
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(error):
        return jsonify({
            'success': False,
            'code': error.name.upper().replace(' ', '_'),
            'message': error.description
        }), error.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(error):
        logger.exception(f"Unhandled error: {str(error)}")
        return jsonify({
            'success': False,
            'code': 'INTERNAL_ERROR',
            'message': 'Internal server error'
        }), 500
