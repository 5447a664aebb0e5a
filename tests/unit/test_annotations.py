# tests/unit/test_annotations.py
"""Tests for sensitive-column annotations.

SQLite cannot store column comments, so the comment-writing path is
exercised by flagging the dialect as comment-capable and intercepting the
DDL before it reaches SQLite.
"""

from __future__ import annotations

from typing import Any

import pytest
from sqlalchemy import event

from batchscrub.contracts import AnnotationUnsupportedError, TargetNotFoundError
from batchscrub.core import annotations
from batchscrub.core.annotations import SENSITIVE_COMMENT, annotate_sensitive_columns, find_sensitive_columns
from batchscrub.core.store import StoreDB


@pytest.fixture
def comment_capable(users_db: StoreDB, monkeypatch: pytest.MonkeyPatch) -> list[str]:
    """Pretend the dialect supports comments; record and neutralise COMMENT DDL."""
    monkeypatch.setattr(users_db.engine.dialect, "supports_comments", True)
    recorded: list[str] = []

    @event.listens_for(users_db.engine, "before_cursor_execute", retval=True)
    def intercept(conn: Any, cursor: Any, statement: str, parameters: Any, context: Any, executemany: bool) -> Any:
        if statement.startswith("COMMENT ON"):
            recorded.append(statement)
            return "SELECT 1", parameters
        return statement, parameters

    return recorded


class TestUnsupportedDialect:
    def test_find_returns_nothing(self, users_db: StoreDB) -> None:
        assert find_sensitive_columns(users_db.engine, "users") == []

    def test_annotate_refuses(self, users_db: StoreDB) -> None:
        with pytest.raises(AnnotationUnsupportedError, match="sqlite"):
            annotate_sensitive_columns(users_db.engine, "users", ["email"])


class TestAnnotate:
    def test_writes_one_comment_per_column(self, users_db: StoreDB, comment_capable: list[str]) -> None:
        count = annotate_sensitive_columns(users_db.engine, "users", ["email", "name"])

        assert count == 2
        assert comment_capable == [
            f"COMMENT ON COLUMN users.email IS '{SENSITIVE_COMMENT}'",
            f"COMMENT ON COLUMN users.name IS '{SENSITIVE_COMMENT}'",
        ]

    def test_missing_column(self, users_db: StoreDB, comment_capable: list[str]) -> None:
        with pytest.raises(TargetNotFoundError, match="phone"):
            annotate_sensitive_columns(users_db.engine, "users", ["email", "phone"])
        assert comment_capable == []

    def test_missing_table(self, users_db: StoreDB, comment_capable: list[str]) -> None:
        with pytest.raises(TargetNotFoundError, match="accounts"):
            annotate_sensitive_columns(users_db.engine, "accounts", ["email"])


class TestFind:
    def test_matches_exact_comment(self, users_db: StoreDB, comment_capable: list[str], monkeypatch: pytest.MonkeyPatch) -> None:
        class FakeInspector:
            def get_columns(self, table: str, schema: str | None = None) -> list[dict[str, Any]]:
                return [
                    {"name": "id", "comment": None},
                    {"name": "email", "comment": SENSITIVE_COMMENT},
                    {"name": "name", "comment": " sensitive_data=true "},
                    {"name": "notes", "comment": "sensitive_data=false"},
                ]

        monkeypatch.setattr(annotations, "inspect", lambda engine: FakeInspector())

        assert find_sensitive_columns(users_db.engine, "users") == ["email", "name"]

    def test_missing_table(self, users_db: StoreDB, comment_capable: list[str]) -> None:
        with pytest.raises(TargetNotFoundError, match="accounts"):
            find_sensitive_columns(users_db.engine, "accounts")
