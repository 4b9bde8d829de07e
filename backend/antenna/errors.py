"""Error kinds raised by the antenna pipeline.

Every error that wraps a library failure is raised with ``from exc`` so the
originating cause stays reachable through ``__cause__``.
"""


class AntennaError(Exception):
    """Base class for every expected pipeline failure."""


class TransportError(AntennaError):
    """Fetching the terminal page or delivering a notification failed."""


class ParseError(AntennaError):
    """The terminal page did not contain a readable update board."""


class StoreError(AntennaError):
    """A lookup or insert against the persisted store failed."""


class ConfigError(AntennaError):
    """A required setting is missing."""
