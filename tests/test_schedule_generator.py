import logging
import random
from itertools import combinations

from app.utils.conflict import sessions_overlap
from app.utils.schedule_generator import (
    DAYS_OF_WEEK,
    GRADES,
    TIME_SLOTS,
    ScheduleRegistry,
    generate_class_schedule,
    generate_classes,
)
from conftest import make_class


def saturated_registry():
    # every day blocked from 00:00 to 23:59
    return ScheduleRegistry(classes=[
        make_class("FULL", 12, *[(d, "00:00", "23:59") for d in DAYS_OF_WEEK])
    ])


def all_sessions(registry):
    return [(c.name, s) for c in registry.classes for s in c.sessions]


def test_class_schedule_on_empty_registry():
    cls = generate_class_schedule("6A", 6, ScheduleRegistry(), target_sessions=3, rng=random.Random(1))

    assert cls.name == "6A"
    assert cls.grade == 6
    assert len(cls.sessions) == 3
    days = [s.day_of_week for s in cls.sessions]
    assert days == sorted(days)
    assert len(set(days)) == 3
    for s in cls.sessions:
        assert (s.start_time, s.end_time) in TIME_SLOTS


def test_class_schedule_avoids_registry():
    registry = ScheduleRegistry(classes=[make_class("6A", 6, (1, "08:00", "09:30"), (3, "10:00", "11:30"))])
    for seed in range(20):
        cls = generate_class_schedule("6B", 6, registry, target_sessions=3, rng=random.Random(seed))
        for s in cls.sessions:
            assert not any(sessions_overlap(s, other) for _, other in all_sessions(registry))


def test_saturated_registry_terminates_with_partial_class(caplog):
    caplog.set_level(logging.WARNING, logger="app.scheduling")

    cls = generate_class_schedule("6A", 6, saturated_registry(), target_sessions=3, rng=random.Random(7), max_attempts=100)

    assert len(cls.sessions) <= 3
    assert cls.sessions == []
    assert "placed 0/3 sessions after 100 attempts" in caplog.text


def test_zero_budget_returns_empty_class():
    cls = generate_class_schedule("6A", 6, ScheduleRegistry(), target_sessions=2, rng=random.Random(0), max_attempts=0)
    assert cls.sessions == []


def test_generate_classes_has_no_conflicts():
    registry = generate_classes(rng=random.Random(2024))

    assert registry.classes
    for cls in registry.classes:
        assert cls.grade in GRADES
        assert cls.name.startswith(str(cls.grade))
        assert 1 <= len(cls.sessions) <= 3
        days = [s.day_of_week for s in cls.sessions]
        assert len(days) == len(set(days))
        assert all(0 <= d <= 6 for d in days)

    for (_, a), (_, b) in combinations(all_sessions(registry), 2):
        assert not sessions_overlap(a, b)


def test_generate_classes_is_reproducible():
    a = generate_classes(rng=random.Random(99))
    b = generate_classes(rng=random.Random(99))
    assert a.model_dump() == b.model_dump()


def test_generate_classes_threads_registry_without_mutating_it():
    start = ScheduleRegistry(classes=[make_class("EXISTING", 9, (2, "08:00", "09:30"))])

    result = generate_classes(registry=start, rng=random.Random(5), grades=[6])

    assert len(start.classes) == 1
    assert result.classes[0].name == "EXISTING"
    assert 2 <= len(result.classes) <= 4
    for _, s in all_sessions(result)[1:]:
        assert not sessions_overlap(s, start.classes[0].sessions[0])


def test_generate_classes_drops_classes_without_sessions(caplog):
    caplog.set_level(logging.WARNING, logger="app.scheduling")
    start = saturated_registry()

    result = generate_classes(registry=start, rng=random.Random(3), grades=[6, 7], max_attempts=20)

    assert [c.name for c in result.classes] == ["FULL"]
    assert "dropped" in caplog.text


def test_registry_session_count():
    registry = ScheduleRegistry().with_class(make_class("6A", 6, (1, "08:00", "09:30"), (2, "08:00", "09:30")))
    registry = registry.with_class(make_class("6B", 6, (3, "08:00", "09:30")))
    assert registry.session_count == 3
