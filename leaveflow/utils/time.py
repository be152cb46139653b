"""Time Utilities - UTC timestamps and formatting"""
from datetime import date, datetime, timezone
from dateutil import parser as date_parser


def utc_now() -> datetime:
    """Get current UTC datetime"""
    return datetime.now(timezone.utc)


def format_iso(dt: datetime) -> str:
    """
    Format datetime to ISO 8601 string
    
    Args:
        dt: Datetime object
        
    Returns:
        ISO formatted string with Z suffix for UTC
    """
    if dt.tzinfo is None:
        # Assume UTC if no timezone
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.isoformat().replace("+00:00", "Z")


def parse_iso(iso_string: str) -> datetime:
    """
    Parse ISO 8601 string to datetime
    
    Args:
        iso_string: ISO formatted datetime string
        
    Returns:
        Datetime object in UTC
    """
    dt = date_parser.isoparse(iso_string)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def inclusive_days(start: date, end: date) -> int:
    """Number of calendar days covered by [start, end], both ends included"""
    return (end - start).days + 1


def to_utc_midnight(day: date) -> datetime:
    """Date -> timezone-aware datetime at 00:00 UTC (Mongo has no date type)"""
    return datetime(day.year, day.month, day.day, tzinfo=timezone.utc)
