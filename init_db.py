from learnx import create_app, db
from learnx.models.counter import initialize_counters
from learnx.utils.seed import seed_sample_data
import sys

app = create_app()

with app.app_context():
    # Drop all tables
    db.drop_all()

    # Create all tables
    db.create_all()

    # Counters first, every id comes from them
    initialize_counters()

    if '--no-sample-data' not in sys.argv:
        created = seed_sample_data(only_if_empty=True)
        print(f"Sample data: {created}")

    print("Database initialized successfully!")
