# app/utils/conflict.py
import re

TIME_PATTERN = re.compile(r"^([0-1][0-9]|2[0-3]):[0-5][0-9]$")


def time_to_minutes(time_str: str) -> int:
    """
    "08:30" -> 510

    Only strict 24h "HH:mm" is accepted, anything else raises ValueError.
    """
    if not isinstance(time_str, str) or not TIME_PATTERN.fullmatch(time_str):
        raise ValueError(f"Invalid time {time_str!r}, expected HH:mm")
    hours, minutes = time_str.split(":")
    return int(hours) * 60 + int(minutes)


def sessions_overlap(a, b) -> bool:
    """
    a, b: anything with day_of_week / start_time / end_time

    判斷是否衝堂：
    1. 同一個 dayOfWeek
    2. [start, end) 半開區間有重疊，剛好接在一起不算
    """
    if a.day_of_week != b.day_of_week:
        return False
    a_start, a_end = time_to_minutes(a.start_time), time_to_minutes(a.end_time)
    b_start, b_end = time_to_minutes(b.start_time), time_to_minutes(b.end_time)
    return a_start < b_end and a_end > b_start


def find_conflict(candidate, existing_classes):
    """
    Return the first (class, session) whose session overlaps candidate, else None.
    The candidate's own class is not skipped; pass a registry without it if needed.
    """
    for cls in existing_classes:
        for session in cls.sessions:
            if sessions_overlap(candidate, session):
                return cls, session
    return None


def has_conflict(candidate, existing_classes) -> bool:
    return find_conflict(candidate, existing_classes) is not None


def find_internal_overlap(sessions):
    """
    First pair of sessions inside one payload that overlap each other, else None.
    """
    sessions = list(sessions)
    for i in range(len(sessions)):
        for j in range(i + 1, len(sessions)):
            if sessions_overlap(sessions[i], sessions[j]):
                return sessions[i], sessions[j]
    return None
