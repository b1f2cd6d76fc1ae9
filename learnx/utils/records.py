from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from .. import db
from ..errors import StorageError, ValidationError
from ..models.counter import next_value
from ..models.course import Course, CourseSession, CATEGORIES, LEVELS, FREQUENCIES
from ..models.service import Service, SERVICE_CATEGORIES, SERVICE_TYPES, PRICING_MODELS, SERVICE_STATUSES
from ..models.user import User
from .permissions import Role, TEACHING_MODES, TEACHING_PREFERENCES
import re
import logging

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$')
MIN_PASSWORD_LENGTH = 6


def _choice(value, choices, field):
    if value not in choices:
        raise ValidationError(f"{field} must be one of {', '.join(choices)}")
    return value


def _required(data, *fields):
    missing = [field for field in fields if data.get(field) in (None, '')]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")


def _text(value, field, default=None):
    """Stripped string value; None falls back to default"""
    if value is None:
        return default
    if not isinstance(value, str):
        raise ValidationError(f'{field} must be a string')
    return value.strip()


def _mapping(value, field):
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ValidationError(f'{field} must be an object')
    return value


def _sequence(value, field):
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValidationError(f'{field} must be a list')
    return value


def json_payload(data):
    """Request body as a dict; a missing body is treated as empty"""
    return _mapping(data, 'request body')


def _number(value, field, minimum=0, cast=float):
    try:
        number = cast(value)
    except (TypeError, ValueError):
        raise ValidationError(f'{field} must be a number')
    if number < minimum:
        raise ValidationError(f'{field} must be at least {minimum}')
    return number


def _save(entity, kind):
    """Persist an entity together with the sequence value it was given"""
    try:
        db.session.add(entity)
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error(f"Error saving {kind}: {str(e)}")
        raise StorageError(f'Could not save {kind}') from e
    return entity


def create_user(name, email, password, role=Role.STUDENT.value, profile=None):
    """Register a user; the userId is assigned once here and never changes"""
    email = _text(email, 'email', '').lower()
    name = _text(name, 'name', '')
    if not name:
        raise ValidationError('Name is required')
    if not EMAIL_PATTERN.match(email):
        raise ValidationError('Please enter a valid email address.')
    if not isinstance(password, str) or len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f'Password must be at least {MIN_PASSWORD_LENGTH} characters long.')
    _choice(role, tuple(r.value for r in Role), 'role')

    if User.query.filter_by(email=email).first():
        raise ValidationError('Email already registered')

    profile = _mapping(profile, 'profile')
    location = _mapping(profile.get('location'), 'profile.location')
    preferences = _mapping(profile.get('preferences'), 'profile.preferences')
    user = User(
        name=name,
        email=email,
        role=role,
        avatar=_text(profile.get('avatar'), 'profile.avatar', ''),
        bio=_text(profile.get('bio'), 'profile.bio', ''),
        phone=_text(profile.get('phone'), 'profile.phone', ''),
        city=_text(location.get('city'), 'profile.location.city', ''),
        postcode=_text(location.get('postcode'), 'profile.location.postcode', ''),
        preferred_teaching_mode=_choice(
            preferences.get('teachingMode', 'both'), TEACHING_PREFERENCES, 'teachingMode'
        ),
        notifications=bool(preferences.get('notification', True))
    )
    user.set_password(password)
    user.user_id = next_value('userId')

    try:
        _save(user, 'user')
    except IntegrityError:
        raise ValidationError('Email already registered')

    logger.info(f"Successfully created user {user.user_id} ({user.role})")
    return user


def create_course(data, instructor=None):
    """Create a course from a camelCase payload"""
    data = json_payload(data)
    _required(data, 'title', 'description', 'category', 'price')
    teaching_mode = _choice(data.get('teachingMode', 'online'), TEACHING_MODES, 'teachingMode')
    location = _mapping(data.get('location'), 'location')
    city = _text(location.get('city'), 'location.city')
    if teaching_mode != 'online' and not city:
        raise ValidationError('A city is required for face-to-face and hybrid courses')

    course = Course(
        title=_text(data['title'], 'title'),
        description=_text(data['description'], 'description'),
        category=_choice(data['category'], CATEGORIES, 'category'),
        level=_choice(data.get('level', 'Beginner'), LEVELS, 'level'),
        teaching_mode=teaching_mode,
        address=_text(location.get('address'), 'location.address'),
        city=city,
        postcode=_text(location.get('postcode'), 'location.postcode'),
        duration=_text(data.get('duration'), 'duration', 'Self-paced'),
        max_students=_number(data.get('maxStudents', 30), 'maxStudents', cast=int),
        current_enrollment=_number(data.get('currentEnrollment', 0), 'currentEnrollment', cast=int),
        students_enrolled=_number(data.get('studentsEnrolled', 0), 'studentsEnrolled', cast=int),
        price=_number(data['price'], 'price'),
        currency=_text(data.get('currency'), 'currency', 'GBP'),
        rating=_number(data.get('rating', 0), 'rating'),
        image=_text(data.get('image'), 'image', ''),
        is_published=bool(data.get('isPublished', True))
    )
    if teaching_mode != 'online' and course.current_enrollment > course.max_students:
        raise ValidationError('currentEnrollment cannot exceed maxStudents')

    if instructor is not None:
        course.instructor_id = instructor.user_id
        course.instructor = instructor.name
    elif data.get('instructor'):
        course.instructor = _text(data['instructor'], 'instructor')

    for entry in _sequence(data.get('schedule'), 'schedule'):
        entry = _mapping(entry, 'schedule entry')
        _required(entry, 'day', 'time')
        course.schedule.append(CourseSession(
            day=_text(entry['day'], 'schedule.day'),
            time=_text(entry['time'], 'schedule.time'),
            frequency=_choice(entry.get('frequency', 'weekly'), FREQUENCIES, 'frequency')
        ))

    course.course_id = next_value('courseId')
    _save(course, 'course')
    logger.info(f"Created course {course.course_id}: {course.title}")
    return course


def create_service(data, provider):
    """Create a catalog service offered by a provider user"""
    data = json_payload(data)
    _required(data, 'title', 'description', 'category', 'serviceType', 'deliveryTime')
    pricing = _mapping(data.get('pricing'), 'pricing')
    model = _choice(pricing.get('model', 'quote'), PRICING_MODELS, 'pricing.model')
    if model == 'fixed' and pricing.get('amount') is None:
        raise ValidationError('Fixed pricing needs an amount')
    if model == 'hourly' and pricing.get('rate') is None:
        raise ValidationError('Hourly pricing needs a rate')

    features = _sequence(data.get('features'), 'features')
    service = Service(
        title=_text(data['title'], 'title'),
        description=_text(data['description'], 'description'),
        provider=provider.name,
        provider_id=provider.user_id,
        category=_choice(data['category'], SERVICE_CATEGORIES, 'category'),
        service_type=_choice(data['serviceType'], SERVICE_TYPES, 'serviceType'),
        pricing_model=model,
        amount=_number(pricing['amount'], 'pricing.amount') if pricing.get('amount') is not None else None,
        rate=_number(pricing['rate'], 'pricing.rate') if pricing.get('rate') is not None else None,
        currency=_text(pricing.get('currency'), 'pricing.currency', 'GBP'),
        min_hours=_number(pricing['minHours'], 'pricing.minHours', cast=int) if pricing.get('minHours') is not None else None,
        delivery_time=_text(data['deliveryTime'], 'deliveryTime'),
        features=[_text(feature, 'features') for feature in features],
        status=_choice(data.get('status', 'available'), SERVICE_STATUSES, 'status')
    )
    if data.get('image'):
        service.image = _text(data['image'], 'image')

    service.service_id = next_value('serviceId')
    _save(service, 'service')
    logger.info(f"Created service {service.service_id} for provider {provider.user_id}")
    return service
