from flask import current_app
from sqlalchemy import update, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from .. import db
from ..errors import StorageError
import logging

logger = logging.getLogger(__name__)

SEQUENCE_NAMES = ('userId', 'courseId', 'enrollmentId', 'serviceId', 'adminId')


class Counter(db.Model):
    """Named integer sequence shared by every server instance"""
    __tablename__ = 'counters'

    name = db.Column(db.String(64), primary_key=True)
    value = db.Column(db.Integer, nullable=False, default=0)

    def __repr__(self):
        return f'<Counter {self.name}={self.value}>'

    def to_dict(self):
        return {
            'name': self.name,
            'value': self.value
        }


def start_value(sequence_name):
    """Configured offset for a sequence; the first id issued is this + 1"""
    starts = current_app.config.get('COUNTER_START', {})
    return starts.get(sequence_name, current_app.config.get('COUNTER_DEFAULT_START', 0))


def _increment(sequence_name):
    stmt = (
        update(Counter)
        .where(Counter.name == sequence_name)
        .values(value=Counter.value + 1)
        .returning(Counter.value)
        .execution_options(synchronize_session=False)
    )
    return db.session.execute(stmt).scalar_one_or_none()


def next_value(sequence_name):
    """Atomically increment a sequence and return its new value.

    The increment is a single UPDATE ... RETURNING statement, so two
    callers can never observe the same value. A sequence that has no row
    yet is created at its configured start first.

    The write joins the current session transaction; the caller commits
    it together with the entity that receives the id.
    """
    try:
        value = _increment(sequence_name)
        if value is None:
            _create_counter(sequence_name)
            value = _increment(sequence_name)
    except SQLAlchemyError as e:
        logger.error(f"Error getting next value for sequence {sequence_name}: {str(e)}")
        db.session.rollback()
        raise StorageError(f'Could not assign {sequence_name}') from e

    if value is None:
        raise StorageError(f'Sequence {sequence_name} is missing')
    return value


def _create_counter(sequence_name):
    start = start_value(sequence_name)
    logger.info(f"Creating sequence {sequence_name} at {start}")
    try:
        # Savepoint so a concurrent creator does not abort the outer transaction
        with db.session.begin_nested():
            db.session.add(Counter(name=sequence_name, value=start))
    except IntegrityError:
        logger.debug(f"Sequence {sequence_name} was created concurrently")


def initialize_counters(names=SEQUENCE_NAMES):
    """Make sure each recognized sequence exists, leaving existing rows untouched"""
    try:
        existing = set(db.session.execute(
            select(Counter.name).where(Counter.name.in_(names))
        ).scalars())
        for name in names:
            if name not in existing:
                db.session.add(Counter(name=name, value=start_value(name)))
                logger.info(f"Counter initialized: {name}")
        db.session.commit()
    except IntegrityError:
        # Another instance seeded the same rows first
        db.session.rollback()
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error(f"Error initializing counters: {str(e)}")
        raise StorageError('Could not initialize counters') from e
