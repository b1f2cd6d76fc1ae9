from .. import db
from ..utils.permissions import ENROLLMENT_MODES
from datetime import datetime

STATUSES = ('active', 'completed', 'cancelled', 'transferred', 'waitlisted')
SESSION_TYPES = ('online', 'in-person')


class AttendanceRecord(db.Model):
    __tablename__ = 'attendance_records'

    id = db.Column(db.Integer, primary_key=True)
    enrollment_id = db.Column(db.Integer, db.ForeignKey('enrollments.enrollment_id'), nullable=False, index=True)
    session_date = db.Column(db.DateTime, nullable=False)
    present = db.Column(db.Boolean, default=False)
    notes = db.Column(db.Text, default='')
    session_type = db.Column(
        db.String(16),
        db.CheckConstraint(f"session_type IN {SESSION_TYPES}"),
        default='in-person'
    )

    def to_dict(self):
        return {
            'sessionDate': self.session_date.isoformat(),
            'present': self.present,
            'notes': self.notes,
            'sessionType': self.session_type
        }


class Enrollment(db.Model):
    """Enrollment model for tracking user course enrollments"""
    __tablename__ = 'enrollments'

    id = db.Column(db.Integer, primary_key=True)
    enrollment_id = db.Column(db.Integer, unique=True, nullable=False, index=True)
    course_id = db.Column(db.Integer, db.ForeignKey('courses.course_id'), nullable=False)
    user_id = db.Column(db.Integer, db.ForeignKey('users.user_id'), nullable=False)
    user_email = db.Column(db.String(120), nullable=False)
    preferred_mode = db.Column(
        db.String(20),
        db.CheckConstraint(f"preferred_mode IN {ENROLLMENT_MODES}"),
        nullable=False,
        default='online'
    )
    status = db.Column(
        db.String(16),
        db.CheckConstraint(f"status IN {STATUSES}"),
        nullable=False,
        default='active'
    )
    final_price = db.Column(db.Float, nullable=False)
    payment_method = db.Column(db.String(32), default='card')
    progress = db.Column(db.Integer, default=0)
    holds_seat = db.Column(db.Boolean, nullable=False, default=False)
    certificate_issued = db.Column(db.Boolean, default=False)
    enrolled_at = db.Column(db.DateTime, default=datetime.utcnow)
    last_accessed = db.Column(db.DateTime, default=datetime.utcnow)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    attendance = db.relationship(
        'AttendanceRecord',
        backref='enrollment',
        lazy=True,
        cascade='all, delete-orphan',
        order_by='AttendanceRecord.session_date'
    )

    __table_args__ = (
        db.UniqueConstraint('course_id', 'user_id', name='uq_enrollments_course_user'),
        db.CheckConstraint('progress >= 0 AND progress <= 100', name='ck_enrollments_progress'),
    )

    def mark_attendance(self, session_date, present=True, notes='', session_type='in-person'):
        record = AttendanceRecord(
            session_date=session_date,
            present=present,
            notes=notes,
            session_type=session_type
        )
        self.attendance.append(record)
        return record

    def attendance_percentage(self):
        if not self.attendance:
            return 0
        present = sum(1 for record in self.attendance if record.present)
        return present / len(self.attendance) * 100

    def __repr__(self):
        return f'<Enrollment {self.enrollment_id}: {self.user_id} - {self.course_id}>'

    def to_dict(self, include_attendance=False):
        """Convert enrollment to dictionary"""
        data = {
            'enrollmentId': self.enrollment_id,
            'courseId': self.course_id,
            'userId': self.user_id,
            'userEmail': self.user_email,
            'preferredMode': self.preferred_mode,
            'status': self.status,
            'finalPrice': self.final_price,
            'paymentMethod': self.payment_method,
            'progress': self.progress,
            'holdsSeat': self.holds_seat,
            'certificateIssued': self.certificate_issued,
            'attendancePercentage': self.attendance_percentage(),
            'enrolledAt': self.enrolled_at.isoformat() if self.enrolled_at else None,
            'lastAccessed': self.last_accessed.isoformat() if self.last_accessed else None
        }
        if include_attendance:
            data['attendance'] = [record.to_dict() for record in self.attendance]
        return data
