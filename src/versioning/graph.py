"""Dependency graph construction: root version selection and recursive subtree resolution."""

import logging
from concurrent.futures import ThreadPoolExecutor, wait
from typing import Callable, FrozenSet, List, Optional, Sequence, Tuple

from constants import Constants
from common.logging_utils import extra_context, is_debug_enabled

from .cache import MemoizingProvider
from .errors import BadPinError, NoRangeMatchError, RegistryEmptyError
from .models import DependencyDecl, DependencyNode, NuGetVersion, PackageIdentity, RootSpec, VersionRange
from .parser import parse_version
from .provider import MetadataProvider
from .reconcile import flatten

logger = logging.getLogger(__name__)


def select_root_version(root: RootSpec, versions: Sequence[NuGetVersion]) -> NuGetVersion:
    """Pick the concrete version for a root package.

    A pinned root must name a listed version. An unpinned root takes the
    highest stable version, or the highest prerelease when nothing stable
    exists.

    Raises:
        RegistryEmptyError: No versions are listed.
        BadPinError: The pin does not parse or is not listed.
    """
    if not versions:
        raise RegistryEmptyError(root.id)

    if root.version:
        try:
            pinned = parse_version(root.version)
        except ValueError as exc:
            raise BadPinError(root.id, root.version) from exc
        if pinned not in versions:
            raise BadPinError(root.id, str(pinned), sorted(versions))
        # Use the registry's instance so the original spelling is kept.
        return next(v for v in versions if v == pinned)

    stable = [v for v in versions if not v.is_prerelease]
    return max(stable) if stable else max(versions)


def prune_direct(nodes: List[DependencyNode]) -> None:
    """Drop descendants that duplicate one of the given direct requirements.

    Only a graph-size optimization: reconciliation enforces correctness.
    """
    directs = {node.identity for node in nodes}
    for node in list(flatten(nodes)):
        node.dependencies[:] = [child for child in node.dependencies if child.identity not in directs]


class DependencyGraphBuilder:
    """Build the requirement forest for a set of root packages.

    Traversal is root order, then declaration order. Version lists and
    declarations of sibling dependencies are prefetched on a thread pool;
    the descent itself is sequential.
    """

    def __init__(self, provider: MetadataProvider, max_workers: Optional[int] = None):
        if not isinstance(provider, MemoizingProvider):
            provider = MemoizingProvider(provider)
        self._provider = provider
        self._max_workers = Constants.MAX_CONCURRENCY if max_workers is None else max_workers
        self._executor: Optional[ThreadPoolExecutor] = None

    def build(self, roots: Sequence[RootSpec]) -> List[DependencyNode]:
        """Resolve every root and its transitive subtree into a forest."""
        if self._max_workers <= 1:
            return self._build_roots(roots)
        with ThreadPoolExecutor(max_workers=self._max_workers, thread_name_prefix="nugetfetch") as executor:
            self._executor = executor
            try:
                return self._build_roots(roots)
            finally:
                self._executor = None

    def _build_roots(self, roots: Sequence[RootSpec]) -> List[DependencyNode]:
        nodes: List[DependencyNode] = []
        for root in roots:
            logger.info("Resolving version for %s...", root.id)
            version = select_root_version(root, self._provider.list_versions(root.id))
            identity = PackageIdentity(root.id, version)
            if is_debug_enabled(logger):
                logger.debug(
                    "Root version selected",
                    extra=extra_context(
                        event="decision", component="graph", action="select_root_version",
                        target=root.id, outcome=str(version), pinned=bool(root.version),
                    ),
                )
            children = self.resolve_subtree(root.id, version, frozenset({identity}))
            nodes.append(DependencyNode(identity, VersionRange.exact(version), children))

        prune_direct(nodes)
        return nodes

    def resolve_subtree(
        self,
        package_id: str,
        version: NuGetVersion,
        path: FrozenSet[PackageIdentity] = frozenset(),
    ) -> List[DependencyNode]:
        """Resolve the declared dependencies of one package version, recursively.

        Each dependency descends at the lowest listed version satisfying its
        declared range. That choice is provisional; reconciliation decides.

        Raises:
            RegistryEmptyError: A dependency has no listed versions.
            NoRangeMatchError: No listed version satisfies a declared range.
        """
        declared = self._provider.list_dependencies(package_id, version)
        self._prefetch(self._provider.list_versions, [(decl.id,) for decl in declared])

        matches: List[Tuple[DependencyDecl, PackageIdentity]] = []
        for decl in declared:
            versions = self._provider.list_versions(decl.id)
            if not versions:
                raise RegistryEmptyError(decl.id)
            best = decl.range.find_best_match(versions)
            if best is None:
                raise NoRangeMatchError(decl.id, decl.range, package_id, version)
            matches.append((decl, PackageIdentity(decl.id, best)))

        self._prefetch(
            self._provider.list_dependencies,
            [(identity.id, identity.version) for _, identity in matches if identity not in path],
        )

        nodes: List[DependencyNode] = []
        for decl, identity in matches:
            if identity in path:
                logger.warning("Dependency cycle detected at %s, not descending further", identity)
                children: List[DependencyNode] = []
            else:
                children = self.resolve_subtree(identity.id, identity.version, path | {identity})
            nodes.append(DependencyNode(identity, decl.range, children))

        prune_direct(nodes)
        return nodes

    def _prefetch(self, fetch: Callable, calls: List[tuple]) -> None:
        """Warm the memo caches concurrently.

        Failures are left in the memo and re-raised by the sequential pass
        that follows, in declaration order.
        """
        if self._executor is None or len(calls) < 2:
            return
        wait([self._executor.submit(fetch, *args) for args in calls])
