"""Storage initialization and JSON table helpers."""

import json
from pathlib import Path
from typing import Any

_data_dir: Path | None = None

TABLES = ("projects", "brand_voices", "personas", "folders", "documents", "snippets")


def init_storage(data_dir: Path) -> None:
    global _data_dir
    _data_dir = data_dir
    _data_dir.mkdir(parents=True, exist_ok=True)


def data_dir() -> Path:
    assert _data_dir is not None, "Call init_storage() before using storage"
    return _data_dir


def _table_path(table: str) -> Path:
    return data_dir() / f"{table}.json"


def read_table(table: str) -> list[dict[str, Any]]:
    """Load every row of a table. Returns [] if the file is missing."""
    path = _table_path(table)
    if not path.is_file():
        return []
    return json.loads(path.read_text())


def write_table(table: str, rows: list[dict[str, Any]]) -> None:
    _table_path(table).write_text(json.dumps(rows, indent=2))


def find_row(table: str, row_id: str) -> dict[str, Any] | None:
    for row in read_table(table):
        if row["id"] == row_id:
            return row
    return None


def rows_for_project(table: str, project_id: str) -> list[dict[str, Any]]:
    return [row for row in read_table(table) if row.get("project_id") == project_id]


def replace_row(table: str, updated: dict[str, Any]) -> None:
    rows = read_table(table)
    write_table(table, [updated if row["id"] == updated["id"] else row for row in rows])


def delete_where(table: str, key: str, value: str) -> int:
    """Drop rows whose ``key`` equals ``value``. Returns how many were removed."""
    rows = read_table(table)
    kept = [row for row in rows if row.get(key) != value]
    if len(kept) != len(rows):
        write_table(table, kept)
    return len(rows) - len(kept)
