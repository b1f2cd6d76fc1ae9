from .. import db
from ..utils.permissions import TEACHING_MODES
from datetime import datetime

CATEGORIES = ('web-dev', 'programming', 'data-science', 'design', 'business', 'mathematics', 'languages')
LEVELS = ('Beginner', 'Intermediate', 'Advanced')
FREQUENCIES = ('weekly', 'fortnightly', 'monthly', 'once')
UNLIMITED = 'unlimited'


class CourseSession(db.Model):
    """One recurring slot in a course schedule"""
    __tablename__ = 'course_sessions'

    id = db.Column(db.Integer, primary_key=True)
    course_id = db.Column(db.Integer, db.ForeignKey('courses.course_id'), nullable=False, index=True)
    day = db.Column(db.String(16), nullable=False)
    time = db.Column(db.String(32), nullable=False)
    frequency = db.Column(
        db.String(16),
        db.CheckConstraint(f"frequency IN {FREQUENCIES}"),
        default='weekly'
    )

    def to_dict(self):
        return {
            'day': self.day,
            'time': self.time,
            'frequency': self.frequency
        }


class Course(db.Model):
    """Course offered on the marketplace"""
    __tablename__ = 'courses'

    id = db.Column(db.Integer, primary_key=True)
    course_id = db.Column(db.Integer, unique=True, nullable=False, index=True)
    title = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=False)
    category = db.Column(
        db.String(32),
        db.CheckConstraint(f"category IN {CATEGORIES}"),
        nullable=False
    )
    level = db.Column(
        db.String(16),
        db.CheckConstraint(f"level IN {LEVELS}"),
        default='Beginner'
    )
    teaching_mode = db.Column(
        db.String(16),
        db.CheckConstraint(f"teaching_mode IN {TEACHING_MODES}"),
        nullable=False,
        default='online'
    )

    # Location, meaningful only for face-to-face and hybrid courses
    address = db.Column(db.String(255))
    city = db.Column(db.String(80))
    postcode = db.Column(db.String(16))

    duration = db.Column(db.String(64), default='Self-paced')
    max_students = db.Column(db.Integer, nullable=False, default=30)
    current_enrollment = db.Column(db.Integer, nullable=False, default=0)
    students_enrolled = db.Column(db.Integer, nullable=False, default=0)
    price = db.Column(db.Float, nullable=False, default=0.0)
    currency = db.Column(db.String(3), default='GBP')
    rating = db.Column(db.Float, default=0.0)
    image = db.Column(db.String(255), default='')

    instructor_id = db.Column(db.Integer, db.ForeignKey('users.user_id'))
    instructor = db.Column(db.String(120), default='LearnX Team')
    is_published = db.Column(db.Boolean, default=True, index=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    schedule = db.relationship('CourseSession', backref='course', lazy=True, cascade='all, delete-orphan')
    enrollments = db.relationship('Enrollment', backref='course', lazy='dynamic')

    __table_args__ = (
        db.CheckConstraint('max_students >= 0', name='ck_courses_max_students'),
        db.CheckConstraint('price >= 0', name='ck_courses_price'),
    )

    @property
    def is_online(self):
        return self.teaching_mode == 'online'

    @property
    def available_spots(self):
        return available_spots(self)

    @property
    def is_full(self):
        return is_full(self)

    def __repr__(self):
        return f'<Course {self.course_id} {self.title}>'

    def to_dict(self):
        """Convert course to dictionary"""
        return {
            'courseId': self.course_id,
            'title': self.title,
            'description': self.description,
            'category': self.category,
            'level': self.level,
            'teachingMode': self.teaching_mode,
            'location': None if self.is_online else {
                'address': self.address,
                'city': self.city,
                'postcode': self.postcode
            },
            'schedule': [session.to_dict() for session in self.schedule],
            'duration': self.duration,
            'maxStudents': self.max_students,
            'currentEnrollment': self.current_enrollment,
            'studentsEnrolled': self.students_enrolled,
            'availableSpots': self.available_spots,
            'isFull': self.is_full,
            'price': self.price,
            'currency': self.currency,
            'rating': self.rating,
            'image': self.image,
            'instructor': self.instructor,
            'instructorId': self.instructor_id,
            'isPublished': self.is_published,
            'createdAt': self.created_at.isoformat() if self.created_at else None,
            'updatedAt': self.updated_at.isoformat() if self.updated_at else None
        }


def available_spots(course):
    """Seats left for in-person attendance, or UNLIMITED for online courses"""
    if course.teaching_mode == 'online':
        return UNLIMITED
    return max(0, course.max_students - course.current_enrollment)


def is_full(course):
    if course.teaching_mode == 'online':
        return False
    return course.current_enrollment >= course.max_students
