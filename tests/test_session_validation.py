import pytest
from pydantic import ValidationError

from app.schemas.class_schedule import SessionIn
from app.utils.session_validation import SessionValidationError, validate_session


def test_valid_session_returns_minutes():
    assert validate_session(1, "08:00", "09:30") == (480, 570)
    assert validate_session(0, "00:00", "23:59") == (0, 1439)
    assert validate_session(6, "19:30", "21:00") == (1170, 1260)


@pytest.mark.parametrize("day", [-1, 7, 1.0, "1", None, True])
def test_rejects_bad_day(day):
    with pytest.raises(SessionValidationError):
        validate_session(day, "08:00", "09:30")


@pytest.mark.parametrize("start,end", [
    ("8:00", "09:30"),
    ("08:00", "24:00"),
    ("08:60", "09:30"),
    ("08:00", None),
    ("", "09:30"),
])
def test_rejects_bad_time_format(start, end):
    with pytest.raises(SessionValidationError, match="HH:mm"):
        validate_session(2, start, end)


@pytest.mark.parametrize("start,end", [("09:30", "09:30"), ("10:00", "09:30")])
def test_rejects_empty_or_inverted_window(start, end):
    with pytest.raises(SessionValidationError, match="after start"):
        validate_session(2, start, end)


def test_validation_error_is_value_error():
    assert issubclass(SessionValidationError, ValueError)


def test_session_schema_uses_shared_validator():
    s = SessionIn.model_validate({"dayOfWeek": 1, "startTime": "08:00", "endTime": "09:30"})
    assert s.day_of_week == 1
    assert s.model_dump(by_alias=True) == {"dayOfWeek": 1, "startTime": "08:00", "endTime": "09:30"}

    with pytest.raises(ValidationError, match="End time must be after start time"):
        SessionIn.model_validate({"dayOfWeek": 1, "startTime": "10:00", "endTime": "09:30"})
