"""Data structures representing zone records."""
from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Record:
    """Single zone record entry.

    Attributes:
        rtype (str): Record type (A, CNAME, TXT, MX).
        ttl (int): Time to live, in seconds.
        data (str): IP literal, target FQDN or free text, depending on type.
        preference (int): MX preference; zero for every other type.
    """

    rtype: str
    ttl: int
    data: str
    preference: int = 0
