"""
Brief: Shared fixtures: zone file writer and a canned-reply UDP upstream stub.

Inputs:
  - None

Outputs:
  - None
"""

import socket
import threading
import time

import pytest
from dnslib import RCODE, DNSRecord


class UpstreamStub:
    """UDP server answering every query with a reply carrying a fixed rcode.

    The last reply sent is kept in `sent` so tests can compare bytes.
    """

    def __init__(self, rcode=RCODE.NXDOMAIN, raw=None):
        self.rcode = rcode
        self.raw = raw
        self.sent = None
        self.received = []
        self.sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        self.sock.bind(("127.0.0.1", 0))
        self.addr = self.sock.getsockname()
        self._stop = False
        self.thread = threading.Thread(target=self._loop, daemon=True)

    @property
    def address(self):
        return f"{self.addr[0]}:{self.addr[1]}"

    def start(self):
        self.thread.start()
        time.sleep(0.02)

    def _loop(self):
        while not self._stop:
            try:
                self.sock.settimeout(0.2)
                data, peer = self.sock.recvfrom(4096)
            except OSError:
                continue
            self.received.append(data)
            if self.raw is not None:
                payload = self.raw
            else:
                reply = DNSRecord.parse(data).reply()
                reply.header.rcode = self.rcode
                payload = reply.pack()
            self.sent = payload
            try:
                self.sock.sendto(payload, peer)
            except OSError:
                pass

    def close(self):
        self._stop = True
        self.thread.join(timeout=1)
        self.sock.close()


@pytest.fixture
def upstream_stub():
    stub = UpstreamStub()
    stub.start()
    try:
        yield stub
    finally:
        stub.close()


@pytest.fixture
def garbage_stub():
    stub = UpstreamStub(raw=b"\x00\x01")
    stub.start()
    try:
        yield stub
    finally:
        stub.close()


@pytest.fixture
def write_zone(tmp_path):
    """Return a helper writing zone text to a file and returning its path."""
    path = tmp_path / "zones.txt"

    def _write(text):
        path.write_text(text, encoding="utf-8")
        return str(path)

    return _write
