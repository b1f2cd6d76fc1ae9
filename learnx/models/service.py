from .. import db
from datetime import datetime

SERVICE_CATEGORIES = (
    'web-development', 'it-support', 'software-testing',
    'game-development', 'mobile-development', 'cybersecurity'
)
SERVICE_TYPES = ('fixed-price', 'hourly', 'project-based', 'consultation')
PRICING_MODELS = ('fixed', 'hourly', 'quote')
SERVICE_STATUSES = ('available', 'unavailable', 'coming-soon')


class Service(db.Model):
    __tablename__ = 'services'

    id = db.Column(db.Integer, primary_key=True)
    service_id = db.Column(db.Integer, unique=True, nullable=False, index=True)
    title = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=False)
    provider = db.Column(db.String(120), nullable=False)
    provider_id = db.Column(db.Integer, db.ForeignKey('users.user_id'), nullable=False, index=True)
    category = db.Column(
        db.String(32),
        db.CheckConstraint(f"category IN {SERVICE_CATEGORIES}"),
        nullable=False
    )
    service_type = db.Column(
        db.String(20),
        db.CheckConstraint(f"service_type IN {SERVICE_TYPES}"),
        nullable=False
    )

    # Pricing
    pricing_model = db.Column(
        db.String(10),
        db.CheckConstraint(f"pricing_model IN {PRICING_MODELS}"),
        nullable=False
    )
    amount = db.Column(db.Float)
    rate = db.Column(db.Float)
    currency = db.Column(db.String(3), default='GBP')
    min_hours = db.Column(db.Integer)

    delivery_time = db.Column(db.String(64), nullable=False)
    image = db.Column(db.String(255), default='/images/service-default.jpg')
    rating = db.Column(db.Float, default=0.0)
    reviews = db.Column(db.Integer, default=0)
    completed_projects = db.Column(db.Integer, default=0)
    features = db.Column(db.JSON, default=list)
    status = db.Column(
        db.String(16),
        db.CheckConstraint(f"status IN {SERVICE_STATUSES}"),
        default='available'
    )
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f'<Service {self.service_id} {self.title}>'

    def to_dict(self):
        return {
            'serviceId': self.service_id,
            'title': self.title,
            'description': self.description,
            'provider': self.provider,
            'providerId': self.provider_id,
            'category': self.category,
            'serviceType': self.service_type,
            'pricing': {
                'model': self.pricing_model,
                'amount': self.amount,
                'rate': self.rate,
                'currency': self.currency,
                'minHours': self.min_hours
            },
            'deliveryTime': self.delivery_time,
            'image': self.image,
            'rating': self.rating,
            'reviews': self.reviews,
            'completedProjects': self.completed_projects,
            'features': self.features or [],
            'status': self.status,
            'createdAt': self.created_at.isoformat() if self.created_at else None,
            'updatedAt': self.updated_at.isoformat() if self.updated_at else None
        }
