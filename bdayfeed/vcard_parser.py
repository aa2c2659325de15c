"""
vCard parser extracting contacts with birthdays
"""

import re
import hashlib
import logging
from datetime import date
from typing import Callable, List, Optional, Tuple

from bdayfeed.models import BirthdayRecord, DEFAULT_LEAP_YEAR

logger = logging.getLogger(__name__)

UID_PREFIX = 'v1-birthday-'

VCARD_BEGIN = 'BEGIN:VCARD'
VCARD_END = 'END:VCARD'

FN_PATTERN = re.compile(r'^FN(?:;[^:]*)?:(.*)$', re.IGNORECASE)
BDAY_PATTERN = re.compile(r'^BDAY(?:;[^:]*)?:(.*)$', re.IGNORECASE)
DATE_NO_YEAR_PATTERN = re.compile(r'^--(\d{2})-?(\d{2})$')
DATE_FULL_PATTERN = re.compile(r'^(\d{4})-?(\d{2})-?(\d{2})$')


def make_identity(name: str) -> str:
    """Deterministic identifier for a contact name"""
    return hashlib.md5(f"{UID_PREFIX}{name}".encode('utf-8')).hexdigest()


def parse_date(raw: str) -> Optional[Tuple[date, bool]]:
    """Parse a BDAY value into (date, has_known_year).

    Handles YYYY-MM-DD, YYYYMMDD and the year-less --MM-DD / --MMDD forms.
    Any time part is ignored. Returns None for anything else.
    """
    # Birthdays are dates, drop the time part
    raw = raw.strip().split('T', 1)[0]

    match = DATE_NO_YEAR_PATTERN.match(raw)
    if match:
        year, has_year = DEFAULT_LEAP_YEAR, False
        month, day = int(match.group(1)), int(match.group(2))
    else:
        match = DATE_FULL_PATTERN.match(raw)
        if not match:
            return None
        has_year = True
        year, month, day = (int(group) for group in match.groups())

    try:
        return date(year, month, day), has_year
    except ValueError as e:
        logger.debug(f"Ignoring impossible birthday '{raw}': {e}")
        return None


class VCardParser:
    """Line-oriented vCard reader producing BirthdayRecord entries"""

    def __init__(self, translate: Callable[..., str]):
        self.translate = translate

    def parse(self, content: str) -> List[BirthdayRecord]:
        """Extract every contact carrying a valid birthday.

        Malformed cards, cards without END:VCARD and cards without a usable
        BDAY are skipped silently.
        """
        records = []
        lines = content.replace('\r\n', '\n').replace('\r', '\n').split('\n')

        current_name = self.translate('unknown_name')
        current_birthday = None
        in_vcard = False

        for line in lines:
            line = line.strip()
            upper = line.upper()

            if upper.startswith(VCARD_BEGIN):
                in_vcard = True
                current_name = self.translate('unknown_name')
                current_birthday = None
                continue

            if not in_vcard:
                continue

            if upper.startswith(VCARD_END):
                in_vcard = False
                if current_birthday is not None:
                    birth_date, has_year = current_birthday
                    records.append(BirthdayRecord(
                        identity=make_identity(current_name),
                        display_name=current_name,
                        birth_date=birth_date,
                        has_known_year=has_year,
                    ))
                else:
                    logger.debug(f"No birthday found for contact: {current_name}")
                continue

            fn_match = FN_PATTERN.match(line)
            if fn_match:
                current_name = fn_match.group(1).strip() or self.translate('unknown_name')

            bday_match = BDAY_PATTERN.match(line)
            if bday_match:
                parsed = parse_date(bday_match.group(1))
                if parsed is not None:
                    current_birthday = parsed
                else:
                    logger.debug(f"Unknown birthday format for {current_name}: {bday_match.group(1)}")

        logger.info(f"Parsed {len(records)} contacts with birthdays")
        return records
