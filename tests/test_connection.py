"""Tests for sqlite connection handling."""

import pytest

from stellix.database import get_db, init_db


def test_init_db_is_idempotent(tmp_path):
    path = tmp_path / "nested" / "stellix.db"

    init_db(path)
    init_db(path)

    with get_db(path) as conn:
        tables = [row["name"] for row in conn.execute("SELECT name FROM sqlite_master WHERE type = 'table'")]
    assert tables == ["documents"]


def test_get_db_rolls_back_on_error(tmp_path):
    path = tmp_path / "stellix.db"
    init_db(path)

    with pytest.raises(RuntimeError):
        with get_db(path) as conn:
            conn.execute(
                "INSERT INTO documents (collection, doc_key, body) VALUES (?, ?, ?)",
                ("channels", "a", "{}"),
            )
            raise RuntimeError("abort")

    with get_db(path) as conn:
        assert conn.execute("SELECT COUNT(*) AS n FROM documents").fetchone()["n"] == 0
