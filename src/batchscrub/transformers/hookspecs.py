"""pluggy hook specifications for transformer plugins.

Usage (shipping a transformer from another package):
    from batchscrub.transformers.hookspecs import hookimpl

    class MyTransformers:
        @hookimpl
        def batchscrub_get_transformers(self):
            return [PhoneNumberScrubber]

and expose ``MyTransformers()`` under the ``batchscrub`` entry-point group.
"""

from typing import TYPE_CHECKING

import pluggy

if TYPE_CHECKING:
    from batchscrub.transformers.base import BaseTransformer

PROJECT_NAME = "batchscrub"

hookspec = pluggy.HookspecMarker(PROJECT_NAME)
hookimpl = pluggy.HookimplMarker(PROJECT_NAME)


class BatchscrubTransformerSpec:
    """Hook specifications for value transformers."""

    @hookspec
    def batchscrub_get_transformers(self) -> list[type["BaseTransformer"]]:  # type: ignore[empty-body]
        """Return transformer classes (not instances)."""
