"""Answer questions from the active zone snapshot."""
from __future__ import annotations

import ipaddress
import logging
from dataclasses import dataclass, field

from dnslib import A, CNAME, MX, QTYPE, RCODE, RR, TXT, DNSLabel, DNSRecord

from .records import Record
from .reload import ZoneHandle
from .zone import ZoneStore, fqdn

logger = logging.getLogger(__name__)

# Longest character-string a single TXT segment can carry.
TXT_SEGMENT = 255

_HANDLED_QTYPES = (QTYPE.A, QTYPE.CNAME, QTYPE.TXT, QTYPE.MX)


@dataclass
class Resolution:
    """Outcome of resolving one or more questions.

    Attributes:
        answers: Resource records to place in the answer section.
        rcode: Response code; NOERROR unless an unsupported type hit a name.
    """

    answers: list[RR] = field(default_factory=list)
    rcode: int = RCODE.NOERROR

    @property
    def answered(self) -> bool:
        return bool(self.answers)


def _txt_segments(text: str) -> list[bytes]:
    raw = text.encode("utf-8")
    return [raw[i:i + TXT_SEGMENT] for i in range(0, len(raw), TXT_SEGMENT)] or [b""]


def _to_rr(owner: DNSLabel, rec: Record) -> RR | None:
    """Convert a stored record to a `dnslib.RR` owned by `owner`."""
    if rec.rtype == "A":
        if ipaddress.ip_address(rec.data).version != 4:
            logger.warning("A record %s holds non-IPv4 address %s, not answered", owner, rec.data)
            return None
        return RR(owner, QTYPE.A, rdata=A(rec.data), ttl=rec.ttl)
    if rec.rtype == "CNAME":
        return RR(owner, QTYPE.CNAME, rdata=CNAME(DNSLabel(rec.data)), ttl=rec.ttl)
    if rec.rtype == "TXT":
        return RR(owner, QTYPE.TXT, rdata=TXT(_txt_segments(rec.data)), ttl=rec.ttl)
    if rec.rtype == "MX":
        return RR(owner, QTYPE.MX, rdata=MX(DNSLabel(rec.data), rec.preference), ttl=rec.ttl)
    return None


def resolve(store: ZoneStore, qname: DNSLabel | str, qtype: int) -> Resolution:
    """Resolve a single question against `store`.

    The question name is lower-cased before lookup while zone names keep
    their original case, so zone names containing capitals never match.
    CNAME records answer A questions directly; the alias is not followed.

    Args:
        store: Snapshot to consult.
        qname: Question name as asked; also used as the answer owner name.
        qtype: Numeric question type (`dnslib.QTYPE`).

    Returns:
        Resolution with zero or one answer. An empty resolution with rcode
        NOERROR means there is no local answer.
    """
    owner = qname if isinstance(qname, DNSLabel) else DNSLabel(qname)
    rec = store.lookup(fqdn(str(qname).lower()))
    if rec is None:
        return Resolution()

    if qtype not in _HANDLED_QTYPES:
        return Resolution(rcode=RCODE.NOTIMP)

    if qtype == QTYPE.A:
        matches = rec.rtype in ("A", "CNAME")
    else:
        matches = rec.rtype == QTYPE.get(qtype)
    if not matches:
        return Resolution()

    rr = _to_rr(owner, rec)
    return Resolution(answers=[rr] if rr is not None else [])


def resolve_request(handle: ZoneHandle, request: DNSRecord) -> Resolution:
    """Resolve every question in `request`.

    Each question reads the active snapshot once, so a reload between
    questions is visible to later ones. Answers accumulate; NOTIMP, once
    raised by any question, stays on the result.
    """
    result = Resolution()
    for q in request.questions:
        single = resolve(handle.store, q.qname, q.qtype)
        result.answers.extend(single.answers)
        if single.rcode != RCODE.NOERROR:
            result.rcode = single.rcode
    return result
