"""
Exception types raised by the feed pipeline
"""


class BirthdayFeedError(Exception):
    """Base class for all feed errors"""


class SourceUnavailable(BirthdayFeedError):
    """The contacts file or server could not be read"""


class FeedError(BirthdayFeedError):
    """The feed could not be produced; message is ready for the user"""


class ConfigurationError(BirthdayFeedError):
    """An environment setting has an invalid value"""
