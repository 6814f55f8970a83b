"""Token, version and range parsing utilities for package resolution."""

from typing import Optional, Tuple

from .models import NuGetVersion, RootSpec, VersionRange


def tokenize_rightmost_colon(s: str) -> Tuple[str, Optional[str]]:
    """Return (identifier, spec or None) using the rightmost-colon rule."""
    s = s.strip()
    if ':' not in s:
        return s, None
    parts = s.rsplit(':', 1)
    identifier = parts[0].strip()
    spec_part = parts[1].strip() if len(parts) > 1 else ''
    spec = spec_part if spec_part else None
    return identifier, spec


def parse_root_token(token: str) -> RootSpec:
    """Parse a CLI token of the form `id` or `id:version` into a RootSpec.

    An empty or `latest` version means the root is unpinned. The version
    string itself is validated later, against the registry.

    Raises:
        ValueError: If the token has no package id.
    """
    identifier, spec = tokenize_rightmost_colon(token)
    if not identifier:
        raise ValueError(f"Missing package id in {token!r}")
    if spec is not None and spec.lower() == 'latest':
        spec = None
    return RootSpec(id=identifier, version=spec)


def parse_version(value: str) -> NuGetVersion:
    """Parse a concrete version string; raises ValueError when invalid."""
    return NuGetVersion.parse(value)


def _parse_bound(text: str, spec: str) -> Optional[NuGetVersion]:
    text = text.strip()
    if not text:
        return None
    try:
        return NuGetVersion.parse(text)
    except ValueError as exc:
        raise ValueError(f"Invalid version '{text}' in range {spec!r}") from exc


def parse_range(spec: Optional[str]) -> VersionRange:
    """Parse NuGet range notation into a VersionRange.

    Supported forms::

        1.0          >= 1.0
        [1.0]        exactly 1.0
        [1.0,2.0)    >= 1.0 and < 2.0
        (1.0,)       > 1.0
        (,2.0]       <= 2.0

    A missing or blank spec matches every version.

    Raises:
        ValueError: If the notation or one of its versions is invalid.
    """
    if spec is None or not spec.strip():
        return VersionRange.all()
    s = spec.strip()

    if s[0] not in '[(':
        if s[-1] in '])':
            raise ValueError(f"Invalid version range {spec!r}")
        return VersionRange(_parse_bound(s, spec), True, None, False)

    if len(s) < 3 or s[-1] not in '])':
        raise ValueError(f"Invalid version range {spec!r}")
    min_inclusive = s[0] == '['
    max_inclusive = s[-1] == ']'
    body = s[1:-1]

    if ',' not in body:
        # Only the bracketed single version form "[1.0]" is meaningful.
        if not (min_inclusive and max_inclusive):
            raise ValueError(f"Invalid version range {spec!r}")
        version = _parse_bound(body, spec)
        if version is None:
            raise ValueError(f"Invalid version range {spec!r}")
        return VersionRange.exact(version)

    lower_text, sep, upper_text = body.partition(',')
    if ',' in upper_text:
        raise ValueError(f"Invalid version range {spec!r}")
    lower = _parse_bound(lower_text, spec)
    upper = _parse_bound(upper_text, spec)
    if lower is None and min_inclusive:
        raise ValueError(f"Invalid version range {spec!r}: '[' needs a lower bound")
    if upper is None and max_inclusive:
        raise ValueError(f"Invalid version range {spec!r}: ']' needs an upper bound")
    # Inclusivity of a missing bound is meaningless; keep it canonical.
    return VersionRange(
        lower,
        min_inclusive if lower is not None else True,
        upper,
        max_inclusive if upper is not None else False,
    )
