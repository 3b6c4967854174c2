"""Server settings loaded from YAML with command-line overrides."""
from __future__ import annotations

import logging
from dataclasses import dataclass, replace

import yaml

from .errors import ConfigError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Settings:
    """Runtime settings.

    Attributes:
        listen_port: UDP port to listen on.
        hosts_file: Path to the zone file.
        log_level: Logging level name.
        poll_freq: Seconds between zone file checks; 0 disables reloading.
        fallback_dns: Upstream ``host:port``; empty disables forwarding.
    """

    listen_port: int = 5353
    hosts_file: str = "zones.txt"
    log_level: str = "INFO"
    poll_freq: int = 5
    fallback_dns: str = ""

    @classmethod
    def load(cls, path: str) -> "Settings":
        """Load settings from the YAML file at `path`.

        A missing file yields the defaults. Unknown keys are ignored.

        Raises:
            ConfigError: On invalid YAML or field values of the wrong type.
        """
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except FileNotFoundError:
            logger.info("config file %s not found, using defaults", path)
            return cls()
        except yaml.YAMLError as exc:
            raise ConfigError(f"YAML parsing error: {exc}") from exc
        except OSError as exc:
            raise ConfigError(f"cannot read {path}: {exc}") from exc

        if not isinstance(data, dict):
            raise ConfigError("config root must be a mapping")

        defaults = cls()
        try:
            return cls(
                listen_port=int(data.get("listen_port", defaults.listen_port)),
                hosts_file=str(data.get("hosts_file", defaults.hosts_file)),
                log_level=str(data.get("log_level", defaults.log_level)),
                poll_freq=int(data.get("poll_freq", defaults.poll_freq)),
                fallback_dns=str(data.get("fallback_dns") or ""),
            )
        except (TypeError, ValueError) as exc:
            raise ConfigError(f"invalid config value: {exc}") from exc

    def with_overrides(
        self,
        port: int | None = None,
        zones: str | None = None,
        fallback: str | None = None,
        poll: int | None = None,
        log_level: str | None = None,
    ) -> "Settings":
        """Return a copy with non-empty, non-zero overrides applied."""
        changes: dict[str, object] = {}
        if port:
            changes["listen_port"] = port
        if zones:
            changes["hosts_file"] = zones
        if fallback:
            changes["fallback_dns"] = fallback
        if poll is not None and poll > 0:
            changes["poll_freq"] = poll
        if log_level:
            changes["log_level"] = log_level
        return replace(self, **changes)
