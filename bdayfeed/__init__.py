"""
Birthday Feed Package
vCard / CardDAV contacts to iCalendar birthday feed
"""

__version__ = "1.1.0"
__description__ = "Birthday calendar feed built from vCard and CardDAV contacts"

from bdayfeed.models import BirthdayRecord, ReminderConfig, FeedResult
from bdayfeed.errors import BirthdayFeedError, SourceUnavailable, FeedError, ConfigurationError
from bdayfeed.translator import Translator
from bdayfeed.vcard_parser import VCardParser, parse_date
from bdayfeed.ical_generator import ICalGenerator
from bdayfeed.cardav_client import CardDAVClient
from bdayfeed.cache import RamCache
from bdayfeed.feed import FeedService

__all__ = [
    'BirthdayRecord',
    'ReminderConfig',
    'FeedResult',
    'BirthdayFeedError',
    'SourceUnavailable',
    'FeedError',
    'ConfigurationError',
    'Translator',
    'VCardParser',
    'parse_date',
    'ICalGenerator',
    'CardDAVClient',
    'RamCache',
    'FeedService',
]
