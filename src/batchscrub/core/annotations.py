# src/batchscrub/core/annotations.py
"""Sensitive-column annotations stored as database column comments.

A column is sensitive when its comment is exactly ``sensitive_data=true``.
This is metadata only: the controller never reads it. Operators use it
to find what needs scrubbing and to record what has been classified.
"""

from collections.abc import Sequence

from sqlalchemy import MetaData, Table, inspect
from sqlalchemy.engine import Engine
from sqlalchemy.exc import NoSuchTableError
from sqlalchemy.schema import SetColumnComment

from batchscrub.contracts.errors import AnnotationUnsupportedError, TargetNotFoundError

SENSITIVE_COMMENT = "sensitive_data=true"


def find_sensitive_columns(engine: Engine, table: str, schema: str | None = None) -> list[str]:
    """Names of columns on ``table`` whose comment marks them sensitive.

    Dialects that cannot store comments (SQLite) have no annotations, so
    the result is empty rather than an error.

    Raises:
        TargetNotFoundError: If the table does not exist
    """
    if not engine.dialect.supports_comments:
        return []
    inspector = inspect(engine)
    try:
        columns = inspector.get_columns(table, schema=schema)
    except NoSuchTableError as e:
        raise TargetNotFoundError(f"table '{table}' not found") from e
    return [c["name"] for c in columns if (c.get("comment") or "").strip() == SENSITIVE_COMMENT]


def annotate_sensitive_columns(
    engine: Engine,
    table: str,
    columns: Sequence[str],
    schema: str | None = None,
) -> int:
    """Mark ``columns`` sensitive with ``COMMENT ON COLUMN``.

    All comments are set in one transaction.

    Returns:
        Number of columns annotated

    Raises:
        AnnotationUnsupportedError: If the dialect cannot store comments
        TargetNotFoundError: If the table or a column does not exist
    """
    if not engine.dialect.supports_comments:
        raise AnnotationUnsupportedError(f"dialect '{engine.dialect.name}' does not support column comments")

    try:
        reflected = Table(table, MetaData(), schema=schema, autoload_with=engine)
    except NoSuchTableError as e:
        raise TargetNotFoundError(f"table '{table}' not found") from e

    missing = [name for name in columns if name not in reflected.c]
    if missing:
        raise TargetNotFoundError(f"columns not found on '{reflected.fullname}': {', '.join(missing)}")

    # The reflected Table belongs to a throwaway MetaData, so setting the
    # comment on its columns does not leak anywhere
    with engine.begin() as conn:
        for name in columns:
            column = reflected.c[name]
            column.comment = SENSITIVE_COMMENT
            conn.execute(SetColumnComment(column))
    return len(columns)
