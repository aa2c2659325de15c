"""
Data types shared by the parser, the generator and the feed service
"""

from dataclasses import dataclass
from datetime import date

UNIT_DAYS = 'd'
UNIT_HOURS = 'h'
UNIT_MINUTES = 'm'
REMINDER_UNITS = (UNIT_DAYS, UNIT_HOURS, UNIT_MINUTES)

DIR_BEFORE = 'before'
DIR_AFTER = 'after'
REMINDER_DIRECTIONS = (DIR_BEFORE, DIR_AFTER)

# Leap year placeholder so that --02-29 stays a valid date
DEFAULT_LEAP_YEAR = 2000


@dataclass(frozen=True)
class BirthdayRecord:
    """A contact that has a usable birthday"""
    identity: str
    display_name: str
    birth_date: date
    has_known_year: bool


@dataclass(frozen=True)
class ReminderConfig:
    enabled: bool = False
    value: int = 1
    unit: str = UNIT_DAYS
    direction: str = DIR_BEFORE


@dataclass(frozen=True)
class FeedResult:
    """A generated calendar document and the moment it was built"""
    content: bytes
    generated_at: int
    etag: str
