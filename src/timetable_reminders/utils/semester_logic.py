"""Semester naming and date/time display helpers."""

from datetime import date

# Semester names by term
SEMESTER_FALL = "Fall"
SEMESTER_SPRING = "Spring"
SEMESTER_SUMMER = "Summer"

# Academic year rolls over in August
ACADEMIC_YEAR_START_MONTH = 8


def current_semester(today: date) -> str:
    """
    Name the semester a date falls in.

    Args:
        today: The current date.

    Returns:
        'Fall' for August-December, 'Spring' for January-May, 'Summer' otherwise.
    """
    if today.month >= ACADEMIC_YEAR_START_MONTH:
        return SEMESTER_FALL
    if today.month <= 5:
        return SEMESTER_SPRING
    return SEMESTER_SUMMER


def current_academic_year(today: date) -> str:
    """
    Get the academic year label for a date.

    Args:
        today: The current date.

    Returns:
        Academic year like "2024-2025".
    """
    if today.month >= ACADEMIC_YEAR_START_MONTH:
        return f"{today.year}-{today.year + 1}"
    return f"{today.year - 1}-{today.year}"


def format_time(time_str: str) -> str:
    """
    Format a time string for display (convert 24h to 12h if needed).

    Args:
        time_str: Time in HH:MM format.

    Returns:
        Formatted time like "8AM" or "2:30PM".
    """
    try:
        hour, minute = map(int, time_str.split(":"))
        period = "AM" if hour < 12 else "PM"
        display_hour = hour if hour <= 12 else hour - 12
        if display_hour == 0:
            display_hour = 12
        if minute == 0:
            return f"{display_hour}{period}"
        return f"{display_hour}:{minute:02d}{period}"
    except (ValueError, AttributeError):
        return time_str
