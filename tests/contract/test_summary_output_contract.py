from __future__ import annotations

import re

"""SUMMARY line format contract."""

SUMMARY_PATTERN = re.compile(
    r"^SUMMARY\s+rows=([0-9]+)\s+created=([0-9]+)\s+matched=([0-9]+)\s+skipped=([0-9]+)\s+"
    r"invalid=([0-9]+)\s+failed=([0-9]+)\s+elapsed_sec=([0-9]+\.?[0-9]*)$"
)


def test_summary_pattern_example_line():
    line = "SUMMARY rows=12 created=7 matched=3 skipped=1 invalid=1 failed=0 elapsed_sec=0.84"
    m = SUMMARY_PATTERN.match(line)
    assert m, "SUMMARY line should match contract regex"
    assert sum(int(g) for g in m.groups()[1:6]) == int(m.group(1))


def test_summary_pattern_rejects_missing_field():
    assert not SUMMARY_PATTERN.match("SUMMARY rows=1 created=1 matched=0 failed=0 elapsed_sec=1")


def test_cli_summary_line_matches_contract(temp_workdir, generic_workbook, capsys):
    from roster_import.cli.__main__ import main as cli_main

    path = temp_workdir / "data" / "roster.xlsx"
    path.write_bytes(generic_workbook)
    cli_main(["commit", str(path), "--event-id", "e1", "--dry-run"])
    lines = [l for l in capsys.readouterr().out.splitlines() if l.startswith("SUMMARY")]
    assert len(lines) == 1
    m = SUMMARY_PATTERN.match(lines[0])
    assert m
    assert sum(int(g) for g in m.groups()[1:6]) == int(m.group(1))
