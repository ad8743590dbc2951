from __future__ import annotations

import pytest

from pingstat.storage.registry_file import (
    RegistryFormatError,
    format_record,
    load_hosts,
    parse_record,
    save_hosts,
)


def test_parse_record_keeps_order() -> None:
    assert parse_record('SERVERS="kernel.org 1.1.1.1 example.net"\n') == [
        "kernel.org",
        "1.1.1.1",
        "example.net",
    ]


def test_parse_record_skips_comments_and_drops_duplicates() -> None:
    text = "# pingstat servers\n\nSERVERS='a.example b.example a.example'\n"
    assert parse_record(text) == ["a.example", "b.example"]


def test_parse_record_is_not_executed() -> None:
    hosts = parse_record('SERVERS="$(rm -rf ~) kernel.org"\n')
    assert hosts == ["$(rm", "-rf", "~)", "kernel.org"]


@pytest.mark.parametrize("text", ["HOSTS=a b\n", 'SERVERS="a b\n'])
def test_parse_record_rejects_garbage(text: str) -> None:
    with pytest.raises(RegistryFormatError):
        parse_record(text)


def test_missing_file_is_empty(tmp_path) -> None:
    assert load_hosts(tmp_path / "absent.conf") == []


def test_corrupt_file_is_empty_with_warning(tmp_path, caplog) -> None:
    path = tmp_path / "pingstat.conf"
    path.write_text('SERVERS="unterminated\n', encoding="utf-8")

    with caplog.at_level("WARNING"):
        assert load_hosts(path) == []

    assert "unparsable" in caplog.text


def test_invalid_entries_are_skipped_with_warning(tmp_path, caplog) -> None:
    path = tmp_path / "pingstat.conf"
    path.write_text('SERVERS="kernel.org bad/host -f ../etc example.net"\n', encoding="utf-8")

    with caplog.at_level("WARNING"):
        assert load_hosts(path) == ["kernel.org", "example.net"]

    assert "bad/host" in caplog.text
    assert "'-f'" in caplog.text


def test_save_rewrites_whole_record(tmp_path) -> None:
    path = tmp_path / "nested" / "pingstat.conf"

    save_hosts(path, ["a.example", "b.example"])
    save_hosts(path, ["b.example"])

    assert path.read_text(encoding="utf-8") == format_record(["b.example"])
    assert load_hosts(path) == ["b.example"]
    assert [p.name for p in path.parent.iterdir()] == ["pingstat.conf"]


def test_empty_registry_round_trips(tmp_path) -> None:
    path = tmp_path / "pingstat.conf"
    save_hosts(path, [])

    assert path.read_text(encoding="utf-8") == 'SERVERS=""\n'
    assert load_hosts(path) == []
