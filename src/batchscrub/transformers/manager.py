"""Transformer registry.

Uses pluggy for hook-based registration, so transformers shipped by other
packages are discovered the same way as the built-ins.
"""

from dataclasses import dataclass
from typing import Any

import pluggy

from batchscrub.transformers.base import BaseTransformer
from batchscrub.transformers.hookspecs import PROJECT_NAME, BatchscrubTransformerSpec


@dataclass(frozen=True)
class TransformerSpec:
    """Registration record for a transformer class."""

    name: str
    version: str
    idempotent: bool
    description: str

    @classmethod
    def from_class(cls, transformer_cls: type[BaseTransformer]) -> "TransformerSpec":
        doc = (transformer_cls.__doc__ or "").strip()
        return cls(
            name=transformer_cls.name,
            version=transformer_cls.plugin_version,
            idempotent=transformer_cls.idempotent,
            description=doc.splitlines()[0] if doc else "",
        )


class TransformerManager:
    """Discovers, registers, and instantiates value transformers.

    Usage:
        manager = TransformerManager()
        manager.register_builtin_transformers()
        transformer = manager.create("scrub_email", {"domain": "example.org"})
    """

    def __init__(self) -> None:
        self._pm = pluggy.PluginManager(PROJECT_NAME)
        self._pm.add_hookspecs(BatchscrubTransformerSpec)
        self._transformers: dict[str, type[BaseTransformer]] = {}

    def register_builtin_transformers(self) -> None:
        from batchscrub.transformers.builtin import BuiltinTransformers

        self.register(BuiltinTransformers())

    def load_entrypoint_transformers(self) -> int:
        """Register transformers exposed under the ``batchscrub`` entry-point group.

        Returns:
            Number of entry points loaded
        """
        loaded = self._pm.load_setuptools_entrypoints(PROJECT_NAME)
        self._refresh_cache()
        return loaded

    def register(self, plugin: Any) -> None:
        """Register a hook implementation object.

        Raises:
            ValueError: If it provides a transformer name already registered
        """
        self._pm.register(plugin)
        try:
            self._refresh_cache()
        except ValueError:
            self._pm.unregister(plugin)
            raise

    def _refresh_cache(self) -> None:
        collected: dict[str, type[BaseTransformer]] = {}
        for transformers in self._pm.hook.batchscrub_get_transformers():
            for cls in transformers:
                name = cls.name
                if name in collected:
                    raise ValueError(f"Duplicate transformer name: '{name}'. Already registered by {collected[name].__name__}")
                collected[name] = cls
        self._transformers = collected

    def get_transformers(self) -> list[type[BaseTransformer]]:
        return list(self._transformers.values())

    def get_transformer_by_name(self, name: str) -> type[BaseTransformer] | None:
        return self._transformers.get(name)

    def get_specs(self) -> list[TransformerSpec]:
        return [TransformerSpec.from_class(cls) for cls in sorted(self._transformers.values(), key=lambda c: c.name)]

    def create(self, name: str, options: dict[str, Any] | None = None) -> BaseTransformer:
        """Instantiate a registered transformer.

        Raises:
            ValueError: If no transformer is registered under ``name``, or
                the transformer rejects its options
        """
        cls = self._transformers.get(name)
        if cls is None:
            available = ", ".join(sorted(self._transformers)) or "(none)"
            raise ValueError(f"Unknown transformer '{name}'. Available: {available}")
        return cls(options or {})
