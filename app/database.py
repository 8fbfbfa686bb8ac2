from sqlmodel import SQLModel, create_engine, Session, select
import logging
from .config import settings
from .db.models import User

logger = logging.getLogger(__name__)

# Choose engine options based on database scheme
db_url = settings.DATABASE_URL
engine_kwargs = {}

if db_url.startswith("sqlite"):
    # SQLite specific connect args
    engine_kwargs.update({
        "connect_args": {"check_same_thread": False}
    })
else:
    # Better resiliency for managed Postgres
    engine_kwargs.update({
        "pool_pre_ping": True,
        "pool_recycle": 300,
        "pool_size": 5,
        "max_overflow": 10,
    })

engine = create_engine(db_url, echo=settings.DEBUG, **engine_kwargs)

# Sample roster inserted on first start when SEED_DOCTORS is enabled
DOCTOR_ROSTER = [
    {"name": "Dr. Sarah Johnson", "email": "sarah.johnson@clinix.com", "specialization": "Cardiology", "phone": "+1-555-0101"},
    {"name": "Dr. Michael Chen", "email": "michael.chen@clinix.com", "specialization": "Dermatology", "phone": "+1-555-0102"},
    {"name": "Dr. Emily Rodriguez", "email": "emily.rodriguez@clinix.com", "specialization": "Pediatrics", "phone": "+1-555-0103"},
    {"name": "Dr. James Wilson", "email": "james.wilson@clinix.com", "specialization": "Orthopedics", "phone": "+1-555-0104"},
]

def create_db_and_tables(bind=None):
    SQLModel.metadata.create_all(bind or engine)

def seed_doctors(session: Session) -> int:
    """Insert the sample doctor roster if no doctor exists yet."""
    existing = session.exec(select(User).where(User.role == "doctor")).first()
    if existing:
        return 0
    logger.info("Seeding initial doctor data...")
    for entry in DOCTOR_ROSTER:
        session.add(User(role="doctor", **entry))
    session.commit()
    logger.info(f"Seeded {len(DOCTOR_ROSTER)} doctors")
    return len(DOCTOR_ROSTER)

def get_session():
    with Session(engine) as session:
        yield session
