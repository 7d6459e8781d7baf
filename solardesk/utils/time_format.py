"""Relative time labels shown next to payments and project durations."""
from datetime import date, datetime, timezone
from typing import Optional, Union

DateLike = Union[date, datetime, str, None]


def _to_datetime(value: DateLike) -> Optional[datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    else:
        # Raises ValueError on garbage; callers decide the label
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _now(now: Optional[datetime]) -> datetime:
    if now is None:
        return datetime.now(timezone.utc)
    if now.tzinfo is None:
        return now.replace(tzinfo=timezone.utc)
    return now


def format_time_ago(timestamp: DateLike, now: Optional[datetime] = None) -> str:
    """Format as ``"2d 3h 5m ago"``, ``"3h 5m ago"``, ``"5m ago"`` or ``"Just now"``."""
    try:
        moment = _to_datetime(timestamp)
    except ValueError:
        return "Invalid date"
    if moment is None:
        return "N/A"

    total_minutes = int((_now(now) - moment).total_seconds() // 60)
    if total_minutes <= 0:
        return "Just now"

    days, remainder = divmod(total_minutes, 60 * 24)
    hours, minutes = divmod(remainder, 60)

    if days > 0:
        return f"{days}d {hours}h {minutes}m ago"
    if hours > 0:
        return f"{hours}h {minutes}m ago"
    return f"{minutes}m ago"


def format_elapsed_duration(start: DateLike, now: Optional[datetime] = None) -> str:
    """Coarse duration since ``start``: days, then weeks, months and years."""
    try:
        moment = _to_datetime(start)
    except ValueError:
        return "N/A"
    if moment is None:
        return "N/A"

    diff_days = int(abs((_now(now) - moment).total_seconds()) // 86400)

    if diff_days < 1:
        return "Today"
    if diff_days == 1:
        return "1 day"
    if diff_days < 7:
        return f"{diff_days} days"

    diff_weeks = diff_days // 7
    if diff_weeks == 1:
        return "1 week"
    if diff_weeks < 4:
        return f"{diff_weeks} weeks"

    diff_months = diff_days // 30
    if diff_months <= 1:
        return "1 month"
    if diff_months < 12:
        return f"{diff_months} months"

    diff_years = diff_days // 365
    if diff_years <= 1:
        return "1 year"
    return f"{diff_years} years"
