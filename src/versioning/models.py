"""Data models for NuGet versions, version ranges and dependency resolution."""

import functools
import re
from dataclasses import dataclass, field
from collections.abc import Mapping
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

import semantic_version

_VERSION_RE = re.compile(
    r"^(?P<major>\d+)"
    r"(?:\.(?P<minor>\d+))?"
    r"(?:\.(?P<patch>\d+))?"
    r"(?:\.(?P<revision>\d+))?"
    r"(?:-(?P<release>[0-9A-Za-z\-]+(?:\.[0-9A-Za-z\-]+)*))?"
    r"(?:\+(?P<metadata>[0-9A-Za-z\-]+(?:\.[0-9A-Za-z\-]+)*))?$"
)


def _comparable_labels(labels: Iterable[str]) -> Tuple[str, ...]:
    """Lowercase labels and strip leading zeros from numeric ones.

    NuGet accepts "rc.01" and treats it as "rc.1"; SemVer 2 rejects the zero.
    """
    return tuple(str(int(label)) if label.isdigit() else label.lower() for label in labels)


@functools.total_ordering
class NuGetVersion:
    """A NuGet package version: major.minor.patch[.revision][-release][+metadata].

    Ordering follows NuGet/SemVer 2 precedence: the four numeric parts first,
    then a prerelease version sorts below the same numeric version without
    release labels. Labels compare case-insensitively. Build metadata is kept
    for display but never takes part in ordering or equality.
    """

    __slots__ = ("major", "minor", "patch", "revision", "release_labels", "metadata", "_label_key")

    def __init__(
        self,
        major: int,
        minor: int = 0,
        patch: int = 0,
        revision: int = 0,
        release_labels: Tuple[str, ...] = (),
        metadata: Optional[str] = None,
    ):
        self.major = major
        self.minor = minor
        self.patch = patch
        self.revision = revision
        self.release_labels = tuple(release_labels)
        self.metadata = metadata
        # semantic_version carries SemVer 2 prerelease precedence; only the
        # labels matter here, the numeric parts are compared separately.
        self._label_key = semantic_version.Version(
            major=0,
            minor=0,
            patch=0,
            prerelease=_comparable_labels(self.release_labels),
        )

    @classmethod
    def parse(cls, value: str) -> "NuGetVersion":
        """Parse a version string.

        Raises:
            ValueError: If the string is not a valid NuGet version.
        """
        if not isinstance(value, str):
            raise ValueError(f"Invalid version: {value!r}")
        m = _VERSION_RE.match(value.strip())
        if not m:
            raise ValueError(f"Invalid version: {value!r}")
        release = m.group("release")
        return cls(
            int(m.group("major")),
            int(m.group("minor") or 0),
            int(m.group("patch") or 0),
            int(m.group("revision") or 0),
            tuple(release.split(".")) if release else (),
            m.group("metadata"),
        )

    @classmethod
    def try_parse(cls, value: str) -> Optional["NuGetVersion"]:
        """Parse a version string, returning None when it is invalid."""
        try:
            return cls.parse(value)
        except ValueError:
            return None

    @property
    def is_prerelease(self) -> bool:
        return bool(self.release_labels)

    @property
    def release(self) -> str:
        return ".".join(self.release_labels)

    @property
    def normalized(self) -> str:
        """Normalized form used by the registry: no metadata, revision only when non-zero."""
        text = f"{self.major}.{self.minor}.{self.patch}"
        if self.revision:
            text += f".{self.revision}"
        if self.release_labels:
            text += f"-{self.release}"
        return text

    def _key(self):
        return (self.major, self.minor, self.patch, self.revision, self._label_key)

    def __eq__(self, other):
        if not isinstance(other, NuGetVersion):
            return NotImplemented
        return self._key() == other._key()

    def __lt__(self, other):
        if not isinstance(other, NuGetVersion):
            return NotImplemented
        return self._key() < other._key()

    def __hash__(self):
        return hash((self.major, self.minor, self.patch, self.revision,
                     _comparable_labels(self.release_labels)))

    def __str__(self):
        return self.normalized

    def __repr__(self):
        full = self.normalized + (f"+{self.metadata}" if self.metadata else "")
        return f"NuGetVersion('{full}')"


@dataclass(frozen=True)
class VersionRange:
    """An interval of versions with optional, independently inclusive bounds.

    A missing bound means no constraint in that direction. Unlike floating
    or "latest" specs, a range never prefers newer versions: the best match
    is always the lowest satisfying candidate.
    """

    min_version: Optional[NuGetVersion] = None
    min_inclusive: bool = True
    max_version: Optional[NuGetVersion] = None
    max_inclusive: bool = False

    def __post_init__(self):
        lo, hi = self.min_version, self.max_version
        if lo is not None and hi is not None:
            if hi < lo:
                raise ValueError(f"Range upper bound {hi} is below lower bound {lo}")
            if hi == lo and not (self.min_inclusive and self.max_inclusive):
                raise ValueError(f"Range ({lo}, {hi}) cannot contain any version")

    @classmethod
    def exact(cls, version: NuGetVersion) -> "VersionRange":
        return cls(version, True, version, True)

    @classmethod
    def all(cls) -> "VersionRange":
        return cls()

    @property
    def is_exact(self) -> bool:
        return (
            self.min_version is not None
            and self.min_version == self.max_version
            and self.min_inclusive
            and self.max_inclusive
        )

    def satisfies(self, version: NuGetVersion) -> bool:
        """Return True when version lies within both bounds."""
        if self.min_version is not None:
            if self.min_inclusive:
                if version < self.min_version:
                    return False
            elif version <= self.min_version:
                return False
        if self.max_version is not None:
            if self.max_inclusive:
                if version > self.max_version:
                    return False
            elif version >= self.max_version:
                return False
        return True

    def find_best_match(self, candidates: Iterable[NuGetVersion]) -> Optional[NuGetVersion]:
        """Return the lowest candidate satisfying the range, or None."""
        best = None
        for candidate in candidates:
            if self.satisfies(candidate) and (best is None or candidate < best):
                best = candidate
        return best

    def pretty(self) -> str:
        """Human readable form, e.g. '>= 1.0.0 && < 2.0.0'."""
        if self.is_exact:
            return f"= {self.min_version}"
        parts = []
        if self.min_version is not None:
            parts.append(f"{'>=' if self.min_inclusive else '>'} {self.min_version}")
        if self.max_version is not None:
            parts.append(f"{'<=' if self.max_inclusive else '<'} {self.max_version}")
        return " && ".join(parts) if parts else "(any)"

    def __str__(self):
        if self.is_exact:
            return f"[{self.min_version}]"
        if self.max_version is None and self.min_inclusive and self.min_version is not None:
            return str(self.min_version)
        return "{}{},{}{}".format(
            "[" if self.min_inclusive and self.min_version is not None else "(",
            self.min_version if self.min_version is not None else "",
            self.max_version if self.max_version is not None else "",
            "]" if self.max_inclusive and self.max_version is not None else ")",
        )


@dataclass
class RootSpec:
    """A package explicitly requested by the user, optionally pinned."""
    id: str
    version: Optional[str] = None


@dataclass(frozen=True, eq=False)
class PackageIdentity:
    """A concrete package reference; ids compare case-insensitively."""
    id: str
    version: NuGetVersion

    @property
    def key(self) -> str:
        return self.id.lower()

    def __eq__(self, other):
        if not isinstance(other, PackageIdentity):
            return NotImplemented
        return self.key == other.key and self.version == other.version

    def __hash__(self):
        return hash((self.key, self.version))

    def __str__(self):
        return f"{self.id} {self.version}"


@dataclass(frozen=True)
class DependencyDecl:
    """A raw dependency declared by one package version's manifest."""
    id: str
    range: VersionRange


@dataclass
class DependencyNode:
    """One requirement edge in the dependency forest, owning its subtree."""
    identity: PackageIdentity
    requirement: VersionRange
    dependencies: List["DependencyNode"] = field(default_factory=list)


class ResolvedSet(Mapping):
    """Final resolution: one version per package id, keys case-insensitive.

    The first spelling seen for an id is kept for display and file names.
    """

    def __init__(self, identities: Iterable[PackageIdentity] = ()):
        self._entries: Dict[str, PackageIdentity] = {}
        for identity in identities:
            if identity.key in self._entries:
                raise ValueError(f"Duplicate package id {identity.id} in resolved set")
            self._entries[identity.key] = identity

    def __getitem__(self, package_id: str) -> NuGetVersion:
        return self._entries[package_id.lower()].version

    def __contains__(self, package_id) -> bool:
        return isinstance(package_id, str) and package_id.lower() in self._entries

    def __iter__(self) -> Iterator[str]:
        for key in sorted(self._entries):
            yield self._entries[key].id

    def __len__(self) -> int:
        return len(self._entries)

    def identities(self) -> List[PackageIdentity]:
        """Resolved packages sorted by id."""
        return [self._entries[key] for key in sorted(self._entries)]

    def __repr__(self):
        body = ", ".join(f"{i.id}: {i.version}" for i in self.identities())
        return f"ResolvedSet({{{body}}})"
