# src/batchscrub/transformers/builtin.py
"""Built-in value transformers.

All built-ins pass NULL through unchanged and are idempotent: applying
one to an already-scrubbed value returns that value as-is, so a run
restarted after a partial failure does not double-transform rows from
windows that were already committed.
"""

import hashlib
import hmac
import re
from typing import Any

from sqlalchemy import ColumnElement, func

from batchscrub.contracts.errors import TransformerContractError
from batchscrub.transformers.base import BaseTransformer
from batchscrub.transformers.hookspecs import hookimpl


class ScrubEmailTransformer(BaseTransformer):
    """Replace an email address with a stable pseudonymous one.

    ``alice@corp.com`` becomes ``user-3f1a9c0b7d2e@example.com``. The
    digest is salted so the mapping cannot be rebuilt from a dictionary of
    known addresses without the salt.

    Options:
        domain: Domain of generated addresses (default "example.com")
        salt: Digest salt (default "")

    Values already shaped like its output (``user-<12 hex>@<domain>``) are
    taken as scrubbed and left alone, so a real address of that exact form
    in the column is not rewritten.
    """

    name = "scrub_email"
    idempotent = True

    def __init__(self, options: dict[str, Any] | None = None) -> None:
        super().__init__(options)
        self._domain: str = self.options.get("domain", "example.com")
        self._salt: str = self.options.get("salt", "")
        self._scrubbed = re.compile(rf"^user-[0-9a-f]{{12}}@{re.escape(self._domain)}$")

    def transform(self, value: Any) -> Any:
        if value is None:
            return None
        text = str(value)
        if self._scrubbed.match(text):
            return text
        digest = hashlib.sha256(f"{self._salt}:{text.strip().lower()}".encode()).hexdigest()[:12]
        return f"user-{digest}@{self._domain}"


class HmacHashTransformer(BaseTransformer):
    """Replace a value with a keyed HMAC-SHA256 digest.

    Options:
        key: HMAC key (required)
        prefix: Non-empty marker prepended to digests (default "anon:");
            values already carrying it are left alone
        length: Hex digits of digest to keep (default 32, max 64)
    """

    name = "hmac_hash"
    idempotent = True

    def __init__(self, options: dict[str, Any] | None = None) -> None:
        super().__init__(options)
        key = self.options.get("key")
        if not key:
            raise ValueError("hmac_hash requires a non-empty 'key' option")
        length = int(self.options.get("length", 32))
        if not 8 <= length <= 64:
            raise ValueError(f"hmac_hash 'length' must be between 8 and 64, got {length}")
        self._key = str(key).encode("utf-8")
        self._prefix: str = self.options.get("prefix", "anon:")
        if not self._prefix:
            raise ValueError("hmac_hash 'prefix' must be non-empty; it marks values already hashed")
        self._length = length

    def transform(self, value: Any) -> Any:
        if value is None:
            return None
        text = str(value)
        if text.startswith(self._prefix):
            return text
        digest = hmac.new(self._key, text.encode("utf-8"), hashlib.sha256).hexdigest()
        return f"{self._prefix}{digest[: self._length]}"


class RedactTransformer(BaseTransformer):
    """Replace every non-NULL value with a constant.

    Options:
        replacement: Constant to write (default "[REDACTED]")
    """

    name = "redact"
    idempotent = True

    def __init__(self, options: dict[str, Any] | None = None) -> None:
        super().__init__(options)
        self._replacement = self.options.get("replacement", "[REDACTED]")

    def transform(self, value: Any) -> Any:
        if value is None:
            return None
        return self._replacement

    def sql_expression(self, column: ColumnElement[Any]) -> ColumnElement[Any] | None:
        # CASE keeps NULLs NULL, matching transform()
        from sqlalchemy import case, literal

        return case((column.is_(None), None), else_=literal(self._replacement))


class NullifyTransformer(BaseTransformer):
    """Set the column to NULL."""

    name = "nullify"
    idempotent = True

    def transform(self, value: Any) -> Any:
        return None

    def sql_expression(self, column: ColumnElement[Any]) -> ColumnElement[Any] | None:
        from sqlalchemy import null

        return null()


class SqlFunctionTransformer(BaseTransformer):
    """Apply a database-side function, e.g. ``SET email = scrub_email(email)``.

    The function must already exist in the database. Whether it is safe
    to reapply is only known to the operator, who declares it.

    Options:
        function: Function name (required)
        idempotent: Operator's assertion that the function is idempotent
            (default False)
    """

    name = "sql_function"

    def __init__(self, options: dict[str, Any] | None = None) -> None:
        super().__init__(options)
        function = self.options.get("function")
        if not function or not re.match(r"^[A-Za-z_][A-Za-z0-9_.]*$", str(function)):
            raise ValueError(f"sql_function requires a valid 'function' option, got {function!r}")
        self._function = str(function)
        # Instance attribute shadows the ClassVar: declared per configuration
        self.idempotent = bool(self.options.get("idempotent", False))  # type: ignore[misc]

    def transform(self, value: Any) -> Any:
        raise TransformerContractError(f"sql_function transformer '{self._function}' runs server-side only")

    def sql_expression(self, column: ColumnElement[Any]) -> ColumnElement[Any] | None:
        fn: Any = func
        for part in self._function.split("."):
            fn = getattr(fn, part)
        result: ColumnElement[Any] = fn(column)
        return result


BUILTIN_TRANSFORMERS: list[type[BaseTransformer]] = [
    ScrubEmailTransformer,
    HmacHashTransformer,
    RedactTransformer,
    NullifyTransformer,
    SqlFunctionTransformer,
]


class BuiltinTransformers:
    """pluggy hook implementation registering the built-ins."""

    @hookimpl
    def batchscrub_get_transformers(self) -> list[type[BaseTransformer]]:
        return list(BUILTIN_TRANSFORMERS)
