"""
JSON locale lookup used for event summaries and error messages
"""

import json
import logging
from pathlib import Path
from typing import Dict

logger = logging.getLogger(__name__)

DEFAULT_LANG = 'en'
LOCALES_DIR = Path(__file__).parent / 'locales'


class Translator:
    """Loads one locale file and formats its messages"""

    def __init__(self, locales_dir=LOCALES_DIR, language: str = DEFAULT_LANG):
        self.locales_dir = Path(locales_dir)
        self.language = language.lower()
        self.messages: Dict[str, str] = {}

        locale_file = self.locales_dir / f"{self.language}.json"
        if not locale_file.exists():
            logger.warning(f"Locale '{self.language}' not found, falling back to '{DEFAULT_LANG}'")
            locale_file = self.locales_dir / f"{DEFAULT_LANG}.json"

        if locale_file.exists():
            try:
                data = json.loads(locale_file.read_text(encoding='utf-8'))
            except (OSError, ValueError) as e:
                logger.error(f"Could not load locale file {locale_file}: {e}")
                data = None
            if isinstance(data, dict):
                self.messages = data

    def get(self, key: str, *args) -> str:
        """Return the message for key, printf-formatted with args.

        Unknown keys come back verbatim. A template that does not fit the
        arguments is returned unformatted instead of raising.
        """
        text = self.messages.get(key, key)
        if not args:
            return text
        try:
            return text % args
        except (TypeError, ValueError) as e:
            logger.debug(f"Could not format message '{key}' with {args}: {e}")
            return text

    @staticmethod
    def available_languages(locales_dir=LOCALES_DIR) -> Dict[str, str]:
        """Map of locale code to its native language name"""
        languages = {}
        locales_dir = Path(locales_dir)
        if not locales_dir.is_dir():
            return languages

        for locale_file in sorted(locales_dir.glob('*.json')):
            code = locale_file.stem
            try:
                content = json.loads(locale_file.read_text(encoding='utf-8'))
            except (OSError, ValueError):
                content = None
            if not isinstance(content, dict):
                content = {}
            languages[code] = content.get('language_name', code.upper())
        return languages
