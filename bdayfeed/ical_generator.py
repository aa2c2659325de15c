"""
iCalendar generator for birthday events
"""

import logging
from datetime import date, datetime, timedelta, timezone
from typing import Callable, Iterable, List, Optional

from bdayfeed.models import BirthdayRecord, ReminderConfig, DIR_BEFORE, UNIT_DAYS, UNIT_HOURS

logger = logging.getLogger(__name__)

CRLF = '\r\n'
UID_DOMAIN = '@bdayfeed'
PRODID = '-//Birthday Feed//Feed Engine//EN'
DTSTAMP_FORMAT = '%Y%m%dT%H%M%SZ'


def escape_text(text: str) -> str:
    """Escape a TEXT value per RFC 5545"""
    return (text.replace('\\', '\\\\')
                .replace(';', '\\;')
                .replace(',', '\\,')
                .replace('\n', '\\n'))


def occurrence_date(year: int, month: int, day: int) -> date:
    """Build a date, letting an overflowing day spill into the next month.

    Feb 29 on a common year becomes March 1.
    """
    return date(year, month, 1) + timedelta(days=day - 1)


def trigger_duration(reminder: ReminderConfig) -> str:
    """ISO 8601 duration for the VALARM trigger, e.g. -P1D"""
    prefix = '-' if reminder.direction == DIR_BEFORE else ''
    if reminder.unit == UNIT_DAYS:
        return f"{prefix}P{reminder.value}D"
    if reminder.unit == UNIT_HOURS:
        return f"{prefix}PT{reminder.value}H"
    return f"{prefix}PT{reminder.value}M"


class ICalGenerator:
    """Renders birthday records as a rolling three year calendar"""

    def __init__(self, translate: Callable[..., str]):
        self.translate = translate

    def generate(self, records: Iterable[BirthdayRecord], reminder: ReminderConfig,
                 now: Optional[datetime] = None) -> str:
        """Build the complete VCALENDAR document.

        Every contact gets one event for the previous, current and next year
        so that the summary can carry the age reached that year.
        """
        if now is None:
            now = datetime.now(timezone.utc)
        elif now.tzinfo is not None:
            now = now.astimezone(timezone.utc)
        dtstamp = now.strftime(DTSTAMP_FORMAT)
        target_years = (now.year - 1, now.year, now.year + 1)

        output = [
            'BEGIN:VCALENDAR',
            'VERSION:2.0',
            f"PRODID:{PRODID}",
            'CALSCALE:GREGORIAN',
            f"X-WR-CALNAME:{escape_text(self.translate('calendar_name'))}",
            'REFRESH-INTERVAL;VALUE=DURATION:P1D',
        ]

        event_count = 0
        for record in records:
            name = escape_text(record.display_name)
            birth = record.birth_date

            for year in target_years:
                # Not born yet in that year
                if record.has_known_year and year < birth.year:
                    continue

                age = year - birth.year if record.has_known_year else None
                summary = self._summary(name, age)
                event_date = occurrence_date(year, birth.month, birth.day)

                output.extend(self._event_lines(
                    uid=f"{record.identity}-{year}{UID_DOMAIN}",
                    dtstamp=dtstamp,
                    event_date=event_date,
                    summary=summary,
                    reminder=reminder,
                ))
                event_count += 1

        output.append('END:VCALENDAR')
        logger.info(f"Generated {event_count} birthday events")
        return CRLF.join(output) + CRLF

    def _summary(self, name: str, age: Optional[int]) -> str:
        if age is None:
            return self.translate('event_summary', name)
        if age == 0:
            return self.translate('event_summary_birth', name)
        if age == 1:
            return self.translate('event_summary_age_1', name, age)
        return self.translate('event_summary_age', name, age)

    def _event_lines(self, uid: str, dtstamp: str, event_date: date, summary: str,
                     reminder: ReminderConfig) -> List[str]:
        lines = [
            'BEGIN:VEVENT',
            f"UID:{uid}",
            f"DTSTAMP:{dtstamp}",
            f"DTSTART;VALUE=DATE:{event_date.isoformat().replace('-', '')}",
            f"SUMMARY:{summary}",
            'TRANSP:TRANSPARENT',
        ]
        if reminder.enabled:
            lines.extend([
                'BEGIN:VALARM',
                'ACTION:DISPLAY',
                f"DESCRIPTION:{summary}",
                f"TRIGGER:{trigger_duration(reminder)}",
                'END:VALARM',
            ])
        lines.append('END:VEVENT')
        return lines
