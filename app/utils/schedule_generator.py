"""
Random weekly schedule generator used to build seed data.

Bounded random retry, not a constraint solver: a class can come out with
fewer sessions than requested when the retry budget runs out.
"""
import logging
import random
from typing import List, Optional, Sequence, Tuple

from pydantic import BaseModel, Field

from app.schemas.class_schedule import ClassScheduleData, SessionIn
from app.utils.conflict import has_conflict

logger = logging.getLogger("app.scheduling")

TIME_SLOTS: List[Tuple[str, str]] = [
    ("08:00", "09:30"),
    ("10:00", "11:30"),
    ("14:00", "15:30"),
    ("16:00", "17:30"),
    ("18:00", "19:30"),
    ("19:30", "21:00"),
]
DAYS_OF_WEEK = [0, 1, 2, 3, 4, 5, 6]
GRADES = [6, 7, 8, 9, 10, 11, 12]
CLASS_LETTERS = ["A", "B", "C"]
DEFAULT_MAX_ATTEMPTS = 100


class ScheduleRegistry(BaseModel):
    """Every class already placed; new sessions are checked against all of them."""
    classes: List[ClassScheduleData] = Field(default_factory=list)

    def with_class(self, cls: ClassScheduleData) -> "ScheduleRegistry":
        return ScheduleRegistry(classes=[*self.classes, cls])

    @property
    def session_count(self) -> int:
        return sum(len(c.sessions) for c in self.classes)


def generate_class_schedule(
    name: str,
    grade: int,
    registry: ScheduleRegistry,
    target_sessions: int,
    rng: Optional[random.Random] = None,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    time_slots: Sequence[Tuple[str, str]] = TIME_SLOTS,
    days: Sequence[int] = DAYS_OF_WEEK,
) -> ClassScheduleData:
    rng = rng or random.Random()

    sessions: List[SessionIn] = []
    used_days = set()  # one session per day per class
    attempts = 0

    while len(sessions) < target_sessions and attempts < max_attempts:
        attempts += 1

        day = rng.choice(days)
        if day in used_days:
            continue

        start, end = rng.choice(time_slots)
        candidate = SessionIn(day_of_week=day, start_time=start, end_time=end)

        if has_conflict(candidate, registry.classes):
            continue

        sessions.append(candidate)
        used_days.add(day)

    sessions.sort(key=lambda s: s.day_of_week)

    if len(sessions) < target_sessions:
        logger.warning(
            "class %s: placed %d/%d sessions after %d attempts",
            name, len(sessions), target_sessions, attempts,
        )
    return ClassScheduleData(name=name, grade=grade, sessions=sessions)


def generate_classes(
    registry: Optional[ScheduleRegistry] = None,
    rng: Optional[random.Random] = None,
    grades: Sequence[int] = GRADES,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
) -> ScheduleRegistry:
    """
    2-3 classes per grade (6A, 6B, ...), 2-3 sessions each.
    Classes that got no session at all are left out.
    """
    registry = registry or ScheduleRegistry()
    rng = rng or random.Random()

    for grade in grades:
        num_classes = rng.randint(2, 3)
        for letter in CLASS_LETTERS[:num_classes]:
            name = f"{grade}{letter}"
            cls = generate_class_schedule(
                name,
                grade,
                registry,
                target_sessions=rng.randint(2, 3),
                rng=rng,
                max_attempts=max_attempts,
            )
            if not cls.sessions:
                logger.warning("class %s dropped: no free slot found", name)
                continue
            registry = registry.with_class(cls)

    logger.info("generated %d classes, %d sessions", len(registry.classes), registry.session_count)
    return registry
