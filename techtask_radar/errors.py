class TechTaskRadarError(Exception):
    """Base class for errors that fail a whole run."""


class ConfigurationError(TechTaskRadarError):
    """Required configuration is missing or unusable."""


class CrawlError(TechTaskRadarError):
    """The listing page could not be opened or rendered."""


class PersistenceError(TechTaskRadarError):
    """The seen-link state could not be read or written."""
