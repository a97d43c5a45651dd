"""
Seed the database with sample classes.

    python -m app.seed --seed 42 --reset
"""
import argparse
import logging
import random

from sqlalchemy.orm import Session

from app.config import settings
from app.database import Base, SessionLocal, engine
from app.logging_config import setup_logging
from app.models.class_schedule import ClassSchedule
from app.models.class_session import ClassSession
from app.models import class_cancellation  # noqa: F401  (mapper registration)
from app.models.user import User
from app.schemas.class_schedule import ClassScheduleData, SessionIn
from app.utils.hashing import hash_password
from app.utils.schedule_generator import ScheduleRegistry, generate_classes

logger = logging.getLogger("app.seed")


def ensure_default_teacher(db: Session) -> User:
    user = db.query(User).filter(User.username == settings.DEFAULT_TEACHER_USERNAME).first()
    if user:
        return user
    user = User(
        username=settings.DEFAULT_TEACHER_USERNAME,
        full_name="Giáo viên",
        password_hash=hash_password(settings.DEFAULT_TEACHER_PASSWORD),
        role="teacher",
    )
    db.add(user)
    db.flush()
    logger.info("created default teacher %s", user.username)
    return user


def load_registry(db: Session) -> ScheduleRegistry:
    """Active classes already stored, so generated ones avoid them."""
    classes = []
    for c in db.query(ClassSchedule).filter(ClassSchedule.is_active.is_(True)).all():
        classes.append(ClassScheduleData(
            name=c.name,
            grade=c.grade,
            sessions=[
                SessionIn(day_of_week=s.day_of_week, start_time=s.start_time, end_time=s.end_time)
                for s in c.sessions
            ],
        ))
    return ScheduleRegistry(classes=classes)


def clear_classes(db: Session) -> int:
    classes = db.query(ClassSchedule).all()
    for c in classes:
        # ORM delete so sessions, cancellations and class_students rows go too
        db.delete(c)
    db.flush()
    return len(classes)


def seed_classes(db: Session, rng: random.Random, reset: bool = False, max_attempts: int = None) -> int:
    if reset:
        removed = clear_classes(db)
        logger.info("removed %d existing classes", removed)

    existing = load_registry(db)
    registry = generate_classes(
        registry=existing,
        rng=rng,
        max_attempts=max_attempts or settings.SCHEDULE_MAX_ATTEMPTS,
    )
    new_classes = registry.classes[len(existing.classes):]

    for cls in new_classes:
        db.add(ClassSchedule(
            name=cls.name,
            grade=cls.grade,
            is_active=True,
            sessions=[
                ClassSession(day_of_week=s.day_of_week, start_time=s.start_time, end_time=s.end_time)
                for s in cls.sessions
            ],
        ))
        logger.info("  %s: %s", cls.name, ", ".join(
            f"d{s.day_of_week} {s.start_time}-{s.end_time}" for s in cls.sessions
        ))
    return len(new_classes)


def main(argv=None):
    parser = argparse.ArgumentParser(description="Seed sample classes with non-conflicting sessions")
    parser.add_argument("--seed", type=int, default=None, help="random seed for a reproducible schedule")
    parser.add_argument("--reset", action="store_true", help="delete existing classes first")
    parser.add_argument("--max-attempts", type=int, default=None, help="retry budget per class")
    args = parser.parse_args(argv)

    setup_logging()
    Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        ensure_default_teacher(db)
        created = seed_classes(db, random.Random(args.seed), reset=args.reset, max_attempts=args.max_attempts)
        db.commit()
    except Exception:
        db.rollback()
        logger.exception("seed failed")
        raise
    finally:
        db.close()

    logger.info("seed done: %d classes created", created)
    return created


if __name__ == "__main__":
    main()
