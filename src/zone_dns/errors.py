"""Exception types raised by the zone server."""
from __future__ import annotations


class ZoneDNSError(Exception):
    """Base class for all zone server errors."""


class ZoneLoadError(ZoneDNSError):
    """The zone source could not be read, or yielded nothing to serve."""


class ForwardError(ZoneDNSError):
    """The upstream resolver did not produce a usable reply."""


class ConfigError(ZoneDNSError):
    """The configuration file is malformed."""
