# Shared pytest fixtures
from __future__ import annotations
import tempfile
from pathlib import Path

import pytest

from csv_import.logging.init import reset_logging
from csv_import.models.field_catalog import FieldCatalog


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        monkeypatch.delenv("CSV_IMPORT_CONFIG", raising=False)
        yield p


@pytest.fixture()
def sample_config_yaml() -> str:
    return """fields: [FullName, Email, Contact, City, Notes]
required_fields: [FullName, Contact]
identifying_field: Email
page_size: 2
match_threshold: 0.4
templates_file: templates.json
output_directory: ./output
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "import.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


@pytest.fixture()
def sample_csv(temp_workdir: Path) -> Path:
    f = temp_workdir / "data" / "leads.csv"
    f.write_text(
        "Full Name,E-mail,Phone Number,Town\n"
        "Alice,alice@example.com,555-0100,Tokyo\n"
        "Bob,BOB@example.com,555-0101,Osaka\n"
        "Carol,bob@example.com,555-0102,Kyoto\n",
        encoding="utf-8",
    )
    return f


@pytest.fixture()
def catalog() -> FieldCatalog:
    return FieldCatalog.default()


@pytest.fixture()
def clean_logging():
    reset_logging()
    yield
    reset_logging()
