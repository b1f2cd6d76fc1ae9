from flask_login import UserMixin
from werkzeug.security import generate_password_hash, check_password_hash
from .. import db, login_manager
from ..utils.permissions import Role, TEACHING_PREFERENCES, ENROLLMENT_MODES, can
from datetime import datetime


@login_manager.user_loader
def load_user(user_id):
    return User.query.filter_by(user_id=int(user_id)).first()


class UserCourse(db.Model):
    """Reference from a user to a course they are enrolled in"""
    __tablename__ = 'user_courses'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.user_id'), nullable=False, index=True)
    course_id = db.Column(db.Integer, db.ForeignKey('courses.course_id'), nullable=False)
    enrolled_at = db.Column(db.DateTime, default=datetime.utcnow)
    preferred_mode = db.Column(
        db.String(20),
        db.CheckConstraint(f"preferred_mode IN {ENROLLMENT_MODES}"),
        default='online'
    )
    progress = db.Column(db.Integer, default=0)
    completed = db.Column(db.Boolean, default=False)

    __table_args__ = (
        db.UniqueConstraint('user_id', 'course_id', name='uq_user_courses_user_course'),
    )

    def to_dict(self):
        return {
            'courseId': self.course_id,
            'enrolledAt': self.enrolled_at.isoformat() if self.enrolled_at else None,
            'preferredMode': self.preferred_mode,
            'progress': self.progress,
            'completed': self.completed
        }


class User(UserMixin, db.Model):
    __tablename__ = 'users'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, unique=True, nullable=False, index=True)
    name = db.Column(db.String(120), nullable=False)
    email = db.Column(db.String(120), unique=True, nullable=False)
    password_hash = db.Column(db.String(256), nullable=False)
    role = db.Column(
        db.String(20),
        db.CheckConstraint(f"role IN {tuple(r.value for r in Role)}"),
        nullable=False,
        default=Role.STUDENT.value
    )

    # Profile
    avatar = db.Column(db.String(255), default='')
    bio = db.Column(db.Text, default='')
    phone = db.Column(db.String(32), default='')
    city = db.Column(db.String(80), default='')
    postcode = db.Column(db.String(16), default='')
    preferred_teaching_mode = db.Column(
        db.String(20),
        db.CheckConstraint(f"preferred_teaching_mode IN {TEACHING_PREFERENCES}"),
        default='both'
    )
    notifications = db.Column(db.Boolean, default=True)

    active = db.Column(db.Boolean, default=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    enrolled_courses = db.relationship(
        'UserCourse',
        backref='user',
        lazy=True,
        cascade='all, delete-orphan',
        order_by='UserCourse.enrolled_at'
    )

    def set_password(self, password):
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        return check_password_hash(self.password_hash, password)

    def get_id(self):
        return str(self.user_id)

    @property
    def is_active(self):
        return bool(self.active)

    @property
    def role_enum(self):
        return Role(self.role)

    def can(self, operation):
        """Check the role permission table for an operation"""
        return can(self.role_enum, operation)

    def is_enrolled(self, course_id):
        """Check if user holds a reference to a specific course"""
        return any(ref.course_id == course_id for ref in self.enrolled_courses)

    def course_reference(self, course_id):
        return next((ref for ref in self.enrolled_courses if ref.course_id == course_id), None)

    def to_dict(self, include_courses=False):
        data = {
            'userId': self.user_id,
            'name': self.name,
            'email': self.email,
            'role': self.role,
            'profile': {
                'avatar': self.avatar,
                'bio': self.bio,
                'phone': self.phone,
                'location': {
                    'city': self.city,
                    'postcode': self.postcode
                },
                'preferences': {
                    'teachingMode': self.preferred_teaching_mode,
                    'notification': self.notifications
                }
            },
            'isActive': self.is_active,
            'createdAt': self.created_at.isoformat() if self.created_at else None
        }
        if include_courses:
            data['enrolledCourses'] = [ref.to_dict() for ref in self.enrolled_courses]
        return data

    def __repr__(self):
        return f'<User {self.user_id} {self.email}>'
