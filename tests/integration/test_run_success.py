from __future__ import annotations

import json
from pathlib import Path

from csv_import.cli import main as cli_main
from csv_import.logging.init import reset_logging

"""Full CLI run: auto-map, validate, preview, commit to JSON Lines."""


def test_run_success_commits_projected_records(temp_workdir: Path, write_config, sample_csv: Path, capsys):
    reset_logging()
    code = cli_main([
        str(sample_csv),
        "--transform", "Email=lowercase",
        "--transform", "City=uppercase",
        "--default", "Notes=web form",
    ])
    out = capsys.readouterr().out
    assert code == 0

    assert f"INFO Processing file: {sample_csv}" in out
    assert "MAPPING:" in out
    assert "  Town -> City" in out
    assert "PREVIEW page 1/2:" in out
    assert "INFO commit completed: records=3" in out

    files = list((temp_workdir / "output").glob("records-*.jsonl"))
    assert len(files) == 1
    records = [json.loads(line) for line in files[0].read_text(encoding="utf-8").splitlines()]
    assert records == [
        {"FullName": "Alice", "Email": "alice@example.com", "Contact": "555-0100",
         "City": "TOKYO", "Notes": "web form"},
        {"FullName": "Bob", "Email": "bob@example.com", "Contact": "555-0101",
         "City": "OSAKA", "Notes": "web form"},
        {"FullName": "Carol", "Email": "bob@example.com", "Contact": "555-0102",
         "City": "KYOTO", "Notes": "web form"},
    ]


def test_run_preview_flags_duplicates(temp_workdir: Path, write_config, sample_csv: Path, capsys):
    reset_logging()
    code = cli_main([str(sample_csv), "--page", "2", "--dry-run"])
    out = capsys.readouterr().out
    assert code == 0
    assert "WARN possible duplicate rows: 2" in out
    assert "PREVIEW page 2/2:" in out
    preview = [line for line in out.splitlines() if line.startswith("  [")]
    assert len(preview) == 1
    assert preview[0].startswith("  [2] ")
    assert preview[0].endswith("(duplicate?)")
    assert not (temp_workdir / "output").exists()


def test_run_output_directory_option(temp_workdir: Path, write_config, sample_csv: Path, capsys):
    reset_logging()
    code = cli_main([str(sample_csv), "--output", "exports"])
    capsys.readouterr()
    assert code == 0
    assert len(list((temp_workdir / "exports").glob("records-*.jsonl"))) == 1


def test_run_inspect_data(temp_workdir: Path, write_config, sample_csv: Path, capsys):
    reset_logging()
    code = cli_main([str(sample_csv), "--inspect-data"])
    out = capsys.readouterr().out
    assert code == 0
    assert "HEADERS: ['Full Name', 'E-mail', 'Phone Number', 'Town']" in out
    assert "Phone Number: suggested=Contact" in out
    assert "sample_rows=" in out
    assert "SUMMARY" not in out
    assert not (temp_workdir / "output").exists()


def test_run_debug_mode(temp_workdir: Path, write_config, sample_csv: Path, capsys):
    reset_logging()
    code = cli_main([str(sample_csv), "--dry-run", "--debug"])
    out = capsys.readouterr().out
    assert code == 0
    assert "DEBUG debug mode enabled" in out
    assert "DEBUG validated rows=3 errors=0 duplicates=2" in out


def test_run_reports_format_warnings_and_still_commits(temp_workdir: Path, write_config, sample_csv: Path, capsys):
    write_config.write_text(
        write_config.read_text(encoding="utf-8") + "field_formats:\n  Email: email\n  Contact: phone\n",
        encoding="utf-8",
    )
    reset_logging()
    code = cli_main([str(sample_csv)])
    out = capsys.readouterr().out
    assert code == 0
    # "555-0100" はハイフン付きで E.164 ではない
    assert "WARN row 0: Contact is not a valid phone number" in out
    assert "WARN row 2: Contact is not a valid phone number" in out
    assert "Email is not a valid" not in out
    assert "INFO commit completed: records=3" in out
