from .. import db
from ..models.course import Course
from ..models.service import Service
from ..models.user import User
from .records import create_user, create_course, create_service
import logging

logger = logging.getLogger(__name__)

SAMPLE_USERS = [
    {
        'name': 'Admin User',
        'email': 'admin@tuition.com',
        'password': 'admin123',
        'role': 'admin',
        'profile': {
            'bio': 'Platform Administrator',
            'phone': '+1234567890',
            'location': {'city': 'London', 'postcode': 'SW1A 1AA'}
        }
    },
    {
        'name': 'Dr. Sarah Johnson',
        'email': 'sarah@tuition.com',
        'password': 'instructor123',
        'role': 'instructor',
        'profile': {
            'bio': 'Senior Python Instructor with 10+ years experience',
            'phone': '+1234567891',
            'location': {'city': 'Manchester', 'postcode': 'M1 1AB'},
            'preferences': {'teachingMode': 'both'}
        }
    },
    {
        'name': 'John Student',
        'email': 'john@student.com',
        'password': 'student123',
        'role': 'student',
        'profile': {
            'bio': 'Aspiring web developer',
            'phone': '+1234567892',
            'location': {'city': 'Birmingham', 'postcode': 'B1 1BC'},
            'preferences': {'teachingMode': 'online'}
        }
    },
    {
        'name': 'Mike Chen',
        'email': 'mike@services.com',
        'password': 'provider123',
        'role': 'provider',
        'profile': {'bio': 'Freelance developer and IT consultant'}
    }
]

SAMPLE_COURSES = [
    {
        'title': 'Complete Web Development Bootcamp',
        'description': 'Learn full-stack web development from scratch. Build real-world projects and master modern technologies.',
        'category': 'web-dev',
        'level': 'Beginner',
        'teachingMode': 'hybrid',
        'location': {'address': '1 Campus Way', 'city': 'London', 'postcode': 'EC1A 1BB'},
        'schedule': [
            {'day': 'Monday', 'time': '18:00-20:00', 'frequency': 'weekly'},
            {'day': 'Wednesday', 'time': '18:00-20:00', 'frequency': 'weekly'}
        ],
        'duration': '12 weeks',
        'maxStudents': 30,
        'price': 199,
        'rating': 4.7
    },
    {
        'title': 'Advanced Python Programming',
        'description': 'Master advanced Python concepts including data structures, algorithms, and professional development practices.',
        'category': 'programming',
        'level': 'Intermediate',
        'teachingMode': 'online',
        'schedule': [
            {'day': 'Tuesday', 'time': '19:00-21:00', 'frequency': 'weekly'},
            {'day': 'Thursday', 'time': '19:00-21:00', 'frequency': 'weekly'}
        ],
        'duration': '8 weeks',
        'maxStudents': 25,
        'price': 149,
        'rating': 4.8
    },
    {
        'title': 'Data Science Essentials',
        'description': 'Dive into data analysis, visualization, and machine learning with Python and popular data science libraries.',
        'category': 'data-science',
        'level': 'Intermediate',
        'teachingMode': 'face-to-face',
        'location': {'address': '22 Oxford Road', 'city': 'Manchester', 'postcode': 'M1 5QA'},
        'schedule': [{'day': 'Saturday', 'time': '10:00-13:00', 'frequency': 'weekly'}],
        'duration': '10 weeks',
        'maxStudents': 12,
        'price': 249,
        'rating': 4.5
    }
]

SAMPLE_SERVICES = [
    {
        'title': 'Business Website Build',
        'description': 'Responsive marketing site with CMS and analytics set up.',
        'category': 'web-development',
        'serviceType': 'fixed-price',
        'pricing': {'model': 'fixed', 'amount': 1200},
        'deliveryTime': '3 weeks',
        'features': ['Responsive design', 'CMS', 'SEO basics']
    },
    {
        'title': 'Remote IT Support',
        'description': 'Troubleshooting and maintenance for small offices.',
        'category': 'it-support',
        'serviceType': 'hourly',
        'pricing': {'model': 'hourly', 'rate': 45, 'minHours': 2},
        'deliveryTime': 'Same day',
        'features': ['Remote access', 'Patch management']
    }
]


def seed_sample_data(only_if_empty=True):
    """Create sample users, courses and services. Returns what was created."""
    if only_if_empty and db.session.query(User.id).first() is not None:
        logger.info("Sample data skipped, users already exist")
        return {'users': 0, 'courses': 0, 'services': 0}

    logger.info("Initializing sample data...")
    users = {}
    created_users = 0
    for sample in SAMPLE_USERS:
        existing = User.query.filter_by(email=sample['email']).first()
        if existing is None:
            existing = create_user(**sample)
            created_users += 1
        users[sample['role']] = existing

    created_courses = 0
    for sample in SAMPLE_COURSES:
        if Course.query.filter_by(title=sample['title']).first() is None:
            create_course(sample, instructor=users['instructor'])
            created_courses += 1

    created_services = 0
    for sample in SAMPLE_SERVICES:
        if Service.query.filter_by(title=sample['title']).first() is None:
            create_service(sample, provider=users['provider'])
            created_services += 1

    logger.info("Sample data created")
    return {
        'users': created_users,
        'courses': created_courses,
        'services': created_services
    }
