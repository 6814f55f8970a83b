"""Per-run memoization for metadata lookups with exactly-once fetch semantics."""

import logging
import threading
from concurrent.futures import Future
from typing import Callable, Dict, Generic, Hashable, List, TypeVar

from common.logging_utils import extra_context, is_debug_enabled

from .models import DependencyDecl, NuGetVersion
from .provider import MetadataProvider, distinct_dependencies

logger = logging.getLogger(__name__)

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


class OnceCache(Generic[K, V]):
    """Thread-safe memo where each key is computed at most once.

    Concurrent callers asking for a key that is being computed block on the
    in-flight computation and receive its result, or its exception.
    """

    def __init__(self, name: str = "cache"):
        self._name = name
        self._lock = threading.Lock()
        self._entries: Dict[K, "Future[V]"] = {}

    def get_or_compute(self, key: K, compute: Callable[[], V]) -> V:
        with self._lock:
            future = self._entries.get(key)
            owner = future is None
            if owner:
                future = Future()
                self._entries[key] = future

        if not owner:
            if is_debug_enabled(logger):
                logger.debug(
                    "Memo hit",
                    extra=extra_context(event="cache_hit", component="cache", target=self._name),
                )
            return future.result()

        try:
            value = compute()
        except BaseException as exc:
            future.set_exception(exc)
            raise
        future.set_result(value)
        return value

    def __contains__(self, key: K) -> bool:
        with self._lock:
            return key in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class MemoizingProvider(MetadataProvider):
    """Wrap a provider so each package and package version is fetched once per run.

    Repeated (id, range) declarations are collapsed whatever the source.
    """

    def __init__(self, inner: MetadataProvider):
        self._inner = inner
        self._versions: OnceCache = OnceCache("versions")
        self._dependencies: OnceCache = OnceCache("dependencies")

    def list_versions(self, package_id: str) -> List[NuGetVersion]:
        return self._versions.get_or_compute(
            package_id.lower(), lambda: list(self._inner.list_versions(package_id))
        )

    def list_dependencies(self, package_id: str, version: NuGetVersion) -> List[DependencyDecl]:
        return self._dependencies.get_or_compute(
            (package_id.lower(), version),
            lambda: distinct_dependencies(self._inner.list_dependencies(package_id, version)),
        )
