"""
Brief: Tests for zone_dns.zone parsing, validation and the immutable store.

Inputs:
  - None

Outputs:
  - None
"""

import pytest

from zone_dns.errors import ZoneLoadError
from zone_dns.records import Record
from zone_dns.zone import ZoneStore, fqdn, is_domain_name, load_zone, parse_zone


def test_parse_all_supported_types():
    """
    Brief: One valid line of each type lands in the store with its data.

    Inputs:
      - zone text with A, CNAME, TXT and MX lines

    Outputs:
      - None: Asserts records and no diagnostics
    """
    store, diags = parse_zone(
        "example.local. 300 IN A 127.0.0.1\n"
        "alias.local 60 in cname example.local\n"
        "info.local. 120 IN TXT hello   world\n"
        "mail.local. 3600 IN MX 10 mx.example.local\n"
    )
    assert diags == []
    assert store.lookup("example.local.") == Record("A", 300, "127.0.0.1")
    assert store.lookup("alias.local.") == Record("CNAME", 60, "example.local.")
    assert store.lookup("info.local.") == Record("TXT", 120, "hello world")
    assert store.lookup("mail.local.") == Record("MX", 3600, "mx.example.local.", 10)
    assert len(store) == 4


def test_comments_and_blank_lines_ignored():
    """
    Brief: Blank lines and ; or # comments are skipped silently.

    Inputs:
      - zone text mixing comments and one record

    Outputs:
      - None: Asserts single name and no diagnostics
    """
    store, diags = parse_zone("\n; comment\n# other\n   \n  ; indented\nok. 1 IN A 1.1.1.1\n")
    assert diags == []
    assert list(store) == ["ok."]


def test_txt_keeps_quotes_verbatim():
    """
    Brief: TXT data keeps its quote characters as written.

    Inputs:
      - quoted TXT line

    Outputs:
      - None: Asserts stored data
    """
    store, _ = parse_zone('info.local. 300 IN TXT "hello world"\n')
    assert store.lookup("info.local.").data == '"hello world"'


def test_ipv6_literal_accepted_for_a():
    """
    Brief: An IPv6 literal is a valid A data field.

    Inputs:
      - A line with ::1

    Outputs:
      - None: Asserts record stored
    """
    store, diags = parse_zone("v6.local. 300 IN A ::1\n")
    assert diags == []
    assert store.lookup("v6.local.").data == "::1"


def test_non_numeric_ttl_skips_only_that_line():
    """
    Brief: A bad TTL yields one diagnostic and does not stop later lines.

    Inputs:
      - bad TTL line followed by a valid line

    Outputs:
      - None: Asserts no entry for bad name, later entry present
    """
    store, diags = parse_zone("bad.local. notanumber IN A 1.2.3.4\ngood.local. 300 IN A 5.6.7.8\n")
    assert "bad.local." not in store
    assert store.lookup("good.local.").data == "5.6.7.8"
    assert len(diags) == 1
    assert diags[0].line == 1
    assert "TTL" in diags[0].message


@pytest.mark.parametrize(
    "line, fragment",
    [
        ("short.local. 300 IN A", "too few fields"),
        ("neg.local. -1 IN A 1.2.3.4", "TTL"),
        ("big.local. 4294967296 IN A 1.2.3.4", "TTL"),
        ("ch.local. 300 CH A 1.2.3.4", "class"),
        ("ip.local. 300 IN A 999.1.1.1", "invalid IP"),
        ("ip.local. 300 IN A fe80::1%eth0", "invalid IP"),
        ("c.local. 300 IN CNAME " + "a" * 64 + ".local.", "CNAME"),
        ("mx.local. 300 IN MX 10", "missing"),
        ("mx.local. 300 IN MX ten mail.local.", "preference"),
        ("mx.local. 300 IN MX 70000 mail.local.", "range"),
        ("mx.local. 300 IN MX 10 bad..host", "MX host"),
        ("srv.local. 300 IN SRV 0 0 80 x.local.", "unsupported record type"),
    ],
)
def test_invalid_lines_are_reported(line, fragment):
    """
    Brief: Each malformed line yields one diagnostic and no record.

    Inputs:
      - line, fragment: bad line and expected message part

    Outputs:
      - None: Asserts empty store and diagnostic text
    """
    store, diags = parse_zone(line + "\n")
    assert len(store) == 0
    assert len(diags) == 1
    assert fragment in diags[0].message


def test_max_ttl_accepted():
    """
    Brief: The largest unsigned 32-bit TTL is accepted.

    Inputs:
      - TTL 4294967295

    Outputs:
      - None: Asserts stored TTL
    """
    store, diags = parse_zone("max.local. 4294967295 IN A 1.2.3.4\n")
    assert diags == []
    assert store.lookup("max.local.").ttl == 4294967295


def test_later_definition_replaces_earlier_regardless_of_type():
    """
    Brief: One record per name; the last line for a name wins.

    Inputs:
      - A then TXT for the same name

    Outputs:
      - None: Asserts only the TXT record is kept
    """
    store, _ = parse_zone("dup.local. 300 IN A 1.2.3.4\ndup.local. 60 IN TXT second\n")
    assert len(store) == 1
    assert store.lookup("dup.local.") == Record("TXT", 60, "second")


def test_names_keep_their_case():
    """
    Brief: Left-hand names are not case folded.

    Inputs:
      - Mixed.Case name

    Outputs:
      - None: Asserts only the original spelling stored
    """
    store, _ = parse_zone("Mixed.Case 300 IN A 10.0.0.1\n")
    assert "Mixed.Case." in store
    assert "mixed.case." not in store


def test_store_is_read_only():
    """
    Brief: A store is detached from its source mapping and cannot be mutated.

    Inputs:
      - dict changed after construction

    Outputs:
      - None: Asserts store unchanged and TypeError on write
    """
    source = {"a.": Record("A", 1, "1.1.1.1")}
    store = ZoneStore(source)
    source["b."] = Record("A", 1, "2.2.2.2")
    assert "b." not in store
    with pytest.raises(TypeError):
        store._records["c."] = Record("A", 1, "3.3.3.3")


def test_fqdn():
    """
    Brief: fqdn() appends the root dot only when missing.

    Inputs:
      - names with and without trailing dot

    Outputs:
      - None: Asserts normalized names
    """
    assert fqdn("example.local") == "example.local."
    assert fqdn("example.local.") == "example.local."


@pytest.mark.parametrize(
    "name, valid",
    [
        (".", True),
        ("example.local.", True),
        ("example.local", True),
        ("", False),
        ("a..b.", False),
        ("a" * 63 + ".", True),
        ("a" * 64 + ".", False),
        (".".join(["a" * 63] * 4) + ".", False),
        (".".join(["a" * 63] * 3 + ["a" * 61]) + ".", True),
    ],
)
def test_is_domain_name(name, valid):
    """
    Brief: Label and total length limits decide name validity.

    Inputs:
      - name, valid: candidate and expected result

    Outputs:
      - None: Asserts validity
    """
    assert is_domain_name(name) is valid


def test_load_zone_reads_file(write_zone):
    """
    Brief: load_zone() reads and parses a file from disk.

    Inputs:
      - zone file with one A line

    Outputs:
      - None: Asserts record and no diagnostics
    """
    path = write_zone("example.local. 300 IN A 127.0.0.1\n")
    store, diags = load_zone(path)
    assert store.lookup("example.local.").data == "127.0.0.1"
    assert diags == []


def test_load_zone_missing_file(tmp_path):
    """
    Brief: A missing file raises ZoneLoadError.

    Inputs:
      - path to a missing file

    Outputs:
      - None: Asserts ZoneLoadError raised
    """
    with pytest.raises(ZoneLoadError):
        load_zone(str(tmp_path / "nope.txt"))


def test_load_zone_invalid_utf8(tmp_path):
    """
    Brief: A file that is not UTF-8 raises ZoneLoadError.

    Inputs:
      - file with invalid bytes

    Outputs:
      - None: Asserts ZoneLoadError raised
    """
    path = tmp_path / "zones.txt"
    path.write_bytes(b"\xff\xfe\xfa\n")
    with pytest.raises(ZoneLoadError):
        load_zone(str(path))
