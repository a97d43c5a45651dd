from app.utils.conflict import TIME_PATTERN, time_to_minutes

MIN_DAY_OF_WEEK = 0  # Sunday
MAX_DAY_OF_WEEK = 6  # Saturday


class SessionValidationError(ValueError):
    pass


def validate_session(day_of_week, start_time, end_time):
    """
    Shared by request schemas, Excel import and the seed generator.
    Raises SessionValidationError, returns (start_minutes, end_minutes) otherwise.
    """
    if isinstance(day_of_week, bool) or not isinstance(day_of_week, int):
        raise SessionValidationError("dayOfWeek must be an integer")
    if not MIN_DAY_OF_WEEK <= day_of_week <= MAX_DAY_OF_WEEK:
        raise SessionValidationError("dayOfWeek must be between 0 (Sunday) and 6 (Saturday)")

    for t in (start_time, end_time):
        if not isinstance(t, str) or not TIME_PATTERN.fullmatch(t):
            raise SessionValidationError(f"Time must be in HH:mm format: {t!r}")

    start = time_to_minutes(start_time)
    end = time_to_minutes(end_time)
    if end <= start:
        raise SessionValidationError("End time must be after start time")
    return start, end
