"""
Feed service: fetch, parse, generate and cache the birthday calendar
"""

import hashlib
import logging
import time
from datetime import datetime
from typing import Optional

from bdayfeed.cache import RamCache
from bdayfeed.cardav_client import CardDAVClient
from bdayfeed.errors import FeedError
from bdayfeed.ical_generator import ICalGenerator
from bdayfeed.models import FeedResult, ReminderConfig
from bdayfeed.translator import Translator
from bdayfeed.vcard_parser import VCardParser

logger = logging.getLogger(__name__)

CACHE_PREFIX = 'bdayfeed_'


def cache_key(source: str, language: str) -> str:
    return CACHE_PREFIX + hashlib.md5(f"{source}{language}".encode('utf-8')).hexdigest()


def make_etag(content: bytes) -> str:
    return f'"{hashlib.md5(content).hexdigest()}"'


def is_not_modified(result: FeedResult, if_modified_since: Optional[datetime] = None,
                    if_none_match: Optional[str] = None) -> bool:
    """Whether the client's copy is current.

    An If-None-Match header takes precedence over If-Modified-Since.
    """
    if if_none_match:
        candidates = [tag.strip() for tag in if_none_match.split(',')]
        return '*' in candidates or result.etag in candidates
    if if_modified_since is not None:
        return int(if_modified_since.timestamp()) >= result.generated_at
    return False


class FeedService:
    """Runs the contacts to calendar pipeline behind the RAM cache"""

    def __init__(self, fetcher: CardDAVClient, cache: RamCache, translator: Translator):
        self.fetcher = fetcher
        self.cache = cache
        self.translator = translator

    def _translator_for(self, language: str) -> Translator:
        if language.lower() == self.translator.language:
            return self.translator
        return Translator(self.translator.locales_dir, language)

    def produce_feed(self, source: str, username: str, password: str, language: str,
                     reminder: ReminderConfig, cache_ttl: int,
                     use_carddav_query: bool = False, force_refresh: bool = False) -> FeedResult:
        """Return the calendar for a source, building it at most once per TTL.

        Raises FeedError with a localized message when the source cannot be
        read. Failures are never cached.
        """
        key = cache_key(source, language)
        use_cache = cache_ttl > 0

        if use_cache and not force_refresh:
            cached = self.cache.get(key)
            if cached is not None:
                logger.debug(f"Serving cached feed generated at {cached.generated_at}")
                return cached

        logger.info(f"Building birthday feed from {source} in '{language}'")
        translate = self._translator_for(language).get
        try:
            raw = self.fetcher.fetch(source, username, password, use_carddav_query)
            records = VCardParser(translate).parse(raw)
            document = ICalGenerator(translate).generate(records, reminder)
        except Exception as e:
            logger.error(f"Error building birthday feed: {e}")
            raise FeedError(translate('err_general', str(e))) from e

        content = document.encode('utf-8')
        result = FeedResult(content=content, generated_at=int(time.time()), etag=make_etag(content))

        if use_cache:
            self.cache.put(key, result, cache_ttl)
        return result
