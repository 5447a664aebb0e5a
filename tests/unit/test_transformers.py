# tests/unit/test_transformers.py
"""Tests for the built-in value transformers."""

from __future__ import annotations

import hashlib
import hmac
import re

import pytest
from sqlalchemy import column

from batchscrub.contracts import TransformerContractError
from batchscrub.transformers import (
    HmacHashTransformer,
    NullifyTransformer,
    RedactTransformer,
    ScrubEmailTransformer,
    SqlFunctionTransformer,
    ValueTransformer,
)
from batchscrub.transformers.builtin import BUILTIN_TRANSFORMERS


class TestProtocol:
    @pytest.mark.parametrize("cls", [ScrubEmailTransformer, RedactTransformer, NullifyTransformer])
    def test_builtins_satisfy_protocol(self, cls: type) -> None:
        assert isinstance(cls(), ValueTransformer)

    def test_builtin_names_are_unique(self) -> None:
        names = [cls.name for cls in BUILTIN_TRANSFORMERS]
        assert len(names) == len(set(names))


class TestScrubEmail:
    def test_output_shape(self) -> None:
        result = ScrubEmailTransformer().transform("alice@corp.com")
        assert re.fullmatch(r"user-[0-9a-f]{12}@example\.com", result)

    def test_deterministic_and_normalised(self) -> None:
        transformer = ScrubEmailTransformer({"salt": "s"})
        assert transformer.transform("alice@corp.com") == transformer.transform("  Alice@CORP.com ")

    def test_salt_changes_output(self) -> None:
        assert ScrubEmailTransformer({"salt": "a"}).transform("x@y.z") != ScrubEmailTransformer({"salt": "b"}).transform("x@y.z")

    def test_digest_matches_salted_sha256(self) -> None:
        expected = hashlib.sha256(b"pepper:bob@corp.com").hexdigest()[:12]
        assert ScrubEmailTransformer({"salt": "pepper", "domain": "anon.test"}).transform("bob@corp.com") == (
            f"user-{expected}@anon.test"
        )

    def test_idempotent(self) -> None:
        transformer = ScrubEmailTransformer()
        once = transformer.transform("alice@corp.com")
        assert transformer.transform(once) == once
        assert transformer.idempotent

    def test_null_passes_through(self) -> None:
        assert ScrubEmailTransformer().transform(None) is None

    def test_runs_in_python(self) -> None:
        assert ScrubEmailTransformer().sql_expression(column("email")) is None

    def test_values_shaped_like_output_are_left_alone(self) -> None:
        transformer = ScrubEmailTransformer({"salt": "s"})
        assert transformer.transform("user-0123456789ab@example.com") == "user-0123456789ab@example.com"
        # Same shape on another domain is a real address
        assert transformer.transform("user-0123456789ab@corp.com") != "user-0123456789ab@corp.com"


class TestHmacHash:
    def test_requires_key(self) -> None:
        with pytest.raises(ValueError, match="key"):
            HmacHashTransformer({})

    @pytest.mark.parametrize("prefix", ["", None])
    def test_empty_prefix_rejected(self, prefix: str | None) -> None:
        with pytest.raises(ValueError, match="prefix"):
            HmacHashTransformer({"key": "k", "prefix": prefix})

    @pytest.mark.parametrize("length", [0, 7, 65])
    def test_length_bounds(self, length: int) -> None:
        with pytest.raises(ValueError, match="length"):
            HmacHashTransformer({"key": "k", "length": length})

    def test_output(self) -> None:
        transformer = HmacHashTransformer({"key": "k", "length": 16})
        expected = hmac.new(b"k", b"555-0100", hashlib.sha256).hexdigest()[:16]
        assert transformer.transform("555-0100") == f"anon:{expected}"

    def test_idempotent(self) -> None:
        transformer = HmacHashTransformer({"key": "k"})
        once = transformer.transform("secret value")
        assert transformer.transform(once) == once

    def test_rerun_with_custom_prefix_leaves_digests_alone(self) -> None:
        transformer = HmacHashTransformer({"key": "k", "prefix": "h$", "length": 8})
        first = [transformer.transform(v) for v in ("alice", "bob", None)]
        assert [transformer.transform(v) for v in first] == first
        assert first[0].startswith("h$")

    def test_null_passes_through(self) -> None:
        assert HmacHashTransformer({"key": "k"}).transform(None) is None


class TestRedactAndNullify:
    def test_redact_constant(self) -> None:
        transformer = RedactTransformer({"replacement": "<gone>"})
        assert transformer.transform("anything") == "<gone>"
        assert transformer.transform(None) is None

    def test_redact_sql_keeps_nulls(self) -> None:
        compiled = str(RedactTransformer().sql_expression(column("email")))
        assert "CASE WHEN" in compiled
        assert "IS NULL" in compiled

    def test_nullify(self) -> None:
        transformer = NullifyTransformer()
        assert transformer.transform("x") is None
        assert str(transformer.sql_expression(column("email"))) == "NULL"


class TestSqlFunction:
    def test_compiles_to_function_call(self) -> None:
        transformer = SqlFunctionTransformer({"function": "lower"})
        assert str(transformer.sql_expression(column("email"))) == "lower(email)"

    def test_dotted_name(self) -> None:
        transformer = SqlFunctionTransformer({"function": "scrub.mask_email"})
        assert str(transformer.sql_expression(column("email"))) == "scrub.mask_email(email)"

    @pytest.mark.parametrize("function", [None, "", "lower(email); DROP TABLE users", "1abc"])
    def test_rejects_invalid_function(self, function: object) -> None:
        with pytest.raises(ValueError, match="function"):
            SqlFunctionTransformer({"function": function})

    def test_idempotence_is_declared_by_operator(self) -> None:
        assert not SqlFunctionTransformer({"function": "lower"}).idempotent
        assert SqlFunctionTransformer({"function": "lower", "idempotent": True}).idempotent

    def test_transform_in_python_is_a_contract_error(self) -> None:
        with pytest.raises(TransformerContractError, match="server-side"):
            SqlFunctionTransformer({"function": "lower"}).transform("x")
