"""Zone file parsing and the immutable record store."""
from __future__ import annotations

import ipaddress
import logging
import re
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from types import MappingProxyType

from .errors import ZoneLoadError
from .records import Record

logger = logging.getLogger(__name__)

MAX_TTL = 0xFFFFFFFF
MAX_PREFERENCE = 0xFFFF
MAX_NAME_WIRE_LENGTH = 255
MAX_LABEL_LENGTH = 63

_UNSIGNED = re.compile(r"[0-9]+")
_SIGNED = re.compile(r"[+-]?[0-9]+")


@dataclass(frozen=True, slots=True)
class Diagnostic:
    """A problem found on one line of a zone source.

    Attributes:
        line (int): 1-based line number.
        message (str): Human readable description.
    """

    line: int
    message: str

    def __str__(self) -> str:
        return f"line {self.line}: {self.message}"


class ZoneStore:
    """Read-only mapping of FQDN to a single `Record`.

    Names are kept exactly as written in the source (trailing dot added,
    case untouched). A store is never modified once built; reloading
    produces a new one.
    """

    __slots__ = ("_records",)

    def __init__(self, records: Mapping[str, Record] | None = None) -> None:
        self._records: Mapping[str, Record] = MappingProxyType(dict(records or {}))

    def lookup(self, name: str) -> Record | None:
        """Return the record stored under `name`, or None."""
        return self._records.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._records

    def __iter__(self) -> Iterator[str]:
        return iter(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def __repr__(self) -> str:
        return f"ZoneStore({len(self)} records)"


def fqdn(name: str) -> str:
    """Append the root separator to `name` unless already present."""
    return name if name.endswith(".") else name + "."


def is_domain_name(name: str) -> bool:
    """Check that `name` fits the DNS wire limits.

    Every label must be 1..63 octets and the encoded name at most 255
    octets. The root name "." is valid.

    Args:
        name: Name in presentation form, with or without trailing dot.

    Returns:
        True if the name could be encoded on the wire.
    """
    if name == ".":
        return True
    if not name:
        return False
    labels = name[:-1].split(".") if name.endswith(".") else name.split(".")
    wire_length = 1
    for label in labels:
        size = len(label.encode("utf-8"))
        if size == 0 or size > MAX_LABEL_LENGTH:
            return False
        wire_length += size + 1
    return wire_length <= MAX_NAME_WIRE_LENGTH


def _is_ip_literal(value: str) -> bool:
    # scoped IPv6 addresses ("fe80::1%eth0") cannot be served
    if "%" in value:
        return False
    try:
        ipaddress.ip_address(value)
    except ValueError:
        return False
    return True


def _parse_record(fields: list[str], ttl: int) -> tuple[Record | None, str | None]:
    """Build a record from the type and data fields of a line.

    Returns:
        (record, None) on success, (None, message) when the line is rejected.
    """
    rtype = fields[3].upper()
    if rtype == "A":
        if not _is_ip_literal(fields[4]):
            return None, f"invalid IP: {fields[4]}"
        return Record("A", ttl, fields[4]), None
    if rtype == "CNAME":
        target = fqdn(fields[4])
        if not is_domain_name(target):
            return None, f"invalid CNAME target: {target}"
        return Record("CNAME", ttl, target), None
    if rtype == "TXT":
        return Record("TXT", ttl, " ".join(fields[4:])), None
    if rtype == "MX":
        if len(fields) < 6:
            return None, "invalid MX: missing preference/host"
        if not _SIGNED.fullmatch(fields[4]):
            return None, f"invalid MX preference: {fields[4]}"
        preference = int(fields[4])
        if not 0 <= preference <= MAX_PREFERENCE:
            return None, f"MX preference out of range: {fields[4]}"
        host = fqdn(fields[5])
        if not is_domain_name(host):
            return None, f"invalid MX host: {host}"
        return Record("MX", ttl, host, preference), None
    return None, f"unsupported record type: {rtype}"


def parse_zone(text: str) -> tuple[ZoneStore, list[Diagnostic]]:
    """Parse zone source text into a store.

    Lines have the form ``name ttl class type data...``. Blank lines and
    lines starting with ``;`` or ``#`` are ignored. A malformed line is
    skipped and reported; it never aborts the parse. When a name appears
    more than once, the last valid line wins whatever its type.

    Args:
        text: Full zone source.

    Returns:
        Tuple of (store, diagnostics).
    """
    records: dict[str, Record] = {}
    diagnostics: list[Diagnostic] = []

    for lineno, raw in enumerate(text.splitlines(), 1):
        line = raw.strip()
        if not line or line.startswith((";", "#")):
            continue

        fields = line.split()
        if len(fields) < 5:
            diagnostics.append(Diagnostic(lineno, "too few fields"))
            continue

        name = fqdn(fields[0])
        if not _UNSIGNED.fullmatch(fields[1]) or int(fields[1]) > MAX_TTL:
            diagnostics.append(Diagnostic(lineno, f"invalid TTL: {fields[1]}"))
            continue
        ttl = int(fields[1])

        rclass = fields[2].upper()
        if rclass != "IN":
            diagnostics.append(Diagnostic(lineno, f"unsupported class: {rclass}"))
            continue

        record, problem = _parse_record(fields, ttl)
        if record is None:
            diagnostics.append(Diagnostic(lineno, problem or "invalid record"))
            continue
        records[name] = record

    return ZoneStore(records), diagnostics


def load_zone(path: str) -> tuple[ZoneStore, list[Diagnostic]]:
    """Read and parse the zone file at `path`.

    Raises:
        ZoneLoadError: If the file cannot be read or is not valid UTF-8.
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            text = f.read()
    except (OSError, UnicodeDecodeError) as exc:
        raise ZoneLoadError(f"cannot read zone file {path}: {exc}") from exc
    return parse_zone(text)


def log_diagnostics(path: str, diagnostics: Iterable[Diagnostic]) -> None:
    """Log each diagnostic for `path` at WARNING.

    Args:
        path: Zone file the diagnostics came from.
        diagnostics: Problems returned by `parse_zone`.
    """
    for diag in diagnostics:
        logger.warning("%s: %s", path, diag)
