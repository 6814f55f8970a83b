"""Resolution façade: build the requirement forest, then reconcile it."""

import logging
from typing import List, Optional, Sequence

from common.logging_utils import extra_context, is_debug_enabled, Timer

from .graph import DependencyGraphBuilder
from .models import DependencyNode, ResolvedSet, RootSpec
from .provider import MetadataProvider
from .reconcile import flatten, reconcile

logger = logging.getLogger(__name__)


class VersionResolutionService:
    """Resolve root packages into one consistent set of package versions."""

    def __init__(self, provider: MetadataProvider, max_workers: Optional[int] = None):
        self._provider = provider
        self._max_workers = max_workers

    def build_graph(self, roots: Sequence[RootSpec]) -> List[DependencyNode]:
        """Build the complete requirement forest for the roots."""
        return DependencyGraphBuilder(self._provider, self._max_workers).build(roots)

    def resolve(self, roots: Sequence[RootSpec]) -> ResolvedSet:
        """Resolve roots to a ResolvedSet.

        Every run starts from empty memo caches.

        Raises:
            ResolutionError: Any failure; no partial result is returned.
        """
        with Timer() as t:
            forest = self.build_graph(roots)
            resolved = reconcile(forest)

        if is_debug_enabled(logger):
            logger.debug(
                "Resolution finished",
                extra=extra_context(
                    event="function_exit", component="service", action="resolve",
                    outcome="success", count=len(resolved),
                    edges=sum(1 for _ in flatten(forest)), duration_ms=t.duration_ms(),
                ),
            )
        logger.info("Resolved %d package(s) from %d root(s).", len(resolved), len(roots))
        return resolved
