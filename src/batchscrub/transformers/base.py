"""Base class and protocol for value transformers.

A value transformer maps one old field value to its anonymized
replacement. The controller applies it to every row of a window inside
that window's transaction; an exception fails the whole window.
"""

from typing import Any, ClassVar, Protocol, runtime_checkable

from sqlalchemy import ColumnElement


@runtime_checkable
class ValueTransformer(Protocol):
    """What the row store and controller require of a transformer.

    Attributes:
        name: Registry name
        idempotent: True if transform(transform(v)) == transform(v) for
            every v. Re-running a scrub after a partial failure revisits
            committed rows, so the controller refuses non-idempotent
            transformers unless explicitly allowed.
    """

    name: str
    idempotent: bool

    def transform(self, value: Any) -> Any: ...

    def sql_expression(self, column: ColumnElement[Any]) -> ColumnElement[Any] | None: ...


class BaseTransformer:
    """Convenience base for transformers.

    Subclasses set ``name`` and ``idempotent`` and implement transform().
    Options arrive already validated by the subclass constructor.
    """

    name: ClassVar[str]
    plugin_version: ClassVar[str] = "1.0.0"
    idempotent: ClassVar[bool] = False

    def __init__(self, options: dict[str, Any] | None = None) -> None:
        self.options: dict[str, Any] = dict(options or {})

    def transform(self, value: Any) -> Any:
        raise NotImplementedError

    def sql_expression(self, column: ColumnElement[Any]) -> ColumnElement[Any] | None:
        """Server-side equivalent of transform(), or None to run in Python."""
        return None

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, idempotent={self.idempotent})"
