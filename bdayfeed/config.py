"""
Configuration management and environment validation
"""

import os
import logging

from croniter import croniter

from bdayfeed.cardav_client import is_remote
from bdayfeed.errors import ConfigurationError
from bdayfeed.models import ReminderConfig, REMINDER_DIRECTIONS, REMINDER_UNITS
from bdayfeed.translator import DEFAULT_LANG, LOCALES_DIR, Translator

MODE_URL = 'url'
MODE_CARDDAV = 'carddav'
MODE_LOCAL = 'local'
SOURCE_MODES = (MODE_URL, MODE_CARDDAV, MODE_LOCAL)

DEFAULT_REFRESH_MINUTES = 60
DEFAULT_LOG_FILE = '/var/log/bdayfeed/feed.log'


def _env_flag(name: str, default: str = 'false') -> bool:
    return os.getenv(name, default).strip().lower() == 'true'


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, '').strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got '{raw}'") from None


def setup_logging():
    """Setup logging configuration from environment variables"""
    log_level = os.getenv('LOG_LEVEL', 'INFO').upper()
    log_to_file = _env_flag('LOG_TO_FILE')
    debug_mode = _env_flag('DEBUG')

    if debug_mode:
        log_level = 'DEBUG'

    detailed_formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    simple_formatter = logging.Formatter(
        '%(asctime)s - %(levelname)s - %(message)s'
    )

    handlers = []

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(simple_formatter)
    handlers.append(console_handler)

    if log_to_file:
        log_file = os.getenv('LOG_FILE', DEFAULT_LOG_FILE)
        try:
            os.makedirs(os.path.dirname(log_file) or '.', exist_ok=True)
            file_handler = logging.FileHandler(log_file)
            file_handler.setFormatter(detailed_formatter)
            handlers.append(file_handler)
        except (OSError, PermissionError) as e:
            print(f"Warning: Could not create log file: {e}")

    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        handlers=handlers
    )

    # Suppress some noisy third-party loggers unless in debug mode
    if not debug_mode:
        logging.getLogger('requests').setLevel(logging.WARNING)
        logging.getLogger('urllib3').setLevel(logging.WARNING)
        logging.getLogger('werkzeug').setLevel(logging.WARNING)


def get_source_config():
    """Get contact source configuration from environment"""
    mode = os.getenv('SOURCE_MODE', MODE_URL).strip().lower()
    if mode not in SOURCE_MODES:
        raise ConfigurationError(f"SOURCE_MODE must be one of {', '.join(SOURCE_MODES)}, got '{mode}'")

    if mode == MODE_LOCAL:
        source = os.getenv('SOURCE_FILE', os.path.join('data', 'contacts.vcf'))
    else:
        source = os.getenv('SOURCE_URL', '').strip()

    return {
        'mode': mode,
        'source': source,
        'username': os.getenv('SOURCE_USERNAME', ''),
        'password': os.getenv('SOURCE_PASSWORD', ''),
        'use_carddav_query': mode == MODE_CARDDAV,
        'language': os.getenv('FEED_LANGUAGE', DEFAULT_LANG).strip().lower() or DEFAULT_LANG,
        'locales_dir': os.getenv('LOCALES_DIR', str(LOCALES_DIR)),
        'fetch_timeout': _env_int('FETCH_TIMEOUT', 30),
    }


def get_reminder_config() -> ReminderConfig:
    """Get VALARM reminder configuration from environment"""
    unit = os.getenv('REMINDER_UNIT', 'd').strip().lower()
    direction = os.getenv('REMINDER_DIRECTION', 'before').strip().lower()
    value = _env_int('REMINDER_VALUE', 1)

    if unit not in REMINDER_UNITS:
        raise ConfigurationError(f"REMINDER_UNIT must be one of {', '.join(REMINDER_UNITS)}, got '{unit}'")
    if direction not in REMINDER_DIRECTIONS:
        raise ConfigurationError(f"REMINDER_DIRECTION must be 'before' or 'after', got '{direction}'")
    if value <= 0:
        raise ConfigurationError(f"REMINDER_VALUE must be a positive integer, got {value}")

    return ReminderConfig(
        enabled=_env_flag('REMINDER_ENABLED'),
        value=value,
        unit=unit,
        direction=direction,
    )


def get_cache_config():
    """Get RAM cache configuration from environment"""
    minutes = _env_int('REFRESH_INTERVAL_MINUTES', DEFAULT_REFRESH_MINUTES)
    if minutes < 0:
        raise ConfigurationError(f"REFRESH_INTERVAL_MINUTES must not be negative, got {minutes}")
    return {
        'ttl_seconds': minutes * 60,
    }


def get_scheduler_config():
    """Get cache warming schedule from environment"""
    return {
        'warm_schedule': os.getenv('WARM_SCHEDULE', '').strip(),
        'startup_delay': _env_int('STARTUP_DELAY', 0),
    }


def get_server_config():
    """Get HTTP server bind address from environment"""
    return {
        'host': os.getenv('HOST', '0.0.0.0'),
        'port': _env_int('PORT', 8080),
    }


def validate_environment():
    """Validate environment variables"""
    logger = logging.getLogger(__name__)

    try:
        source = get_source_config()
        get_reminder_config()
        get_cache_config()
        scheduler = get_scheduler_config()
        get_server_config()
    except ConfigurationError as e:
        logger.error(f"Invalid configuration: {e}")
        return False

    if not source['source']:
        logger.error("Missing required environment variable: SOURCE_URL")
        return False

    if source['mode'] != MODE_LOCAL and not is_remote(source['source']):
        logger.error(f"SOURCE_URL must start with http:// or https:// in {source['mode']} mode, got '{source['source']}'")
        return False

    if scheduler['warm_schedule'] and not croniter.is_valid(scheduler['warm_schedule']):
        logger.error(f"Invalid cron schedule in WARM_SCHEDULE: {scheduler['warm_schedule']}")
        return False

    if source['language'] not in Translator.available_languages(source['locales_dir']):
        logger.warning(f"No locale file for FEED_LANGUAGE={source['language']}, English will be used")

    logger.info("Environment validation passed")
    return True
