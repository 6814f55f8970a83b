"""Parse declared dependencies out of .nuspec manifests."""

import logging
import xml.etree.ElementTree as ET
from typing import List, Optional

from common.logging_utils import extra_context, is_debug_enabled
from versioning.models import DependencyDecl
from versioning.parser import parse_range
from versioning.provider import distinct_dependencies

logger = logging.getLogger(__name__)


def _local(tag: str) -> str:
    """Strip the XML namespace; nuspec schemas use several namespace URIs."""
    return tag.rsplit("}", 1)[-1]


def _child(elem: ET.Element, name: str) -> Optional[ET.Element]:
    for child in elem:
        if _local(child.tag) == name:
            return child
    return None


def parse_nuspec_dependencies(xml_text: str, package_id: str = "") -> List[DependencyDecl]:
    """Extract the distinct dependency declarations from nuspec XML.

    Dependencies may be listed directly under <dependencies> or inside one
    <group> per target framework; both forms are read in document order and
    duplicates across groups are collapsed. A missing version attribute
    means any version.

    Args:
        xml_text: The nuspec document.
        package_id: Package being parsed, for error messages.

    Returns:
        List of DependencyDecl.

    Raises:
        ValueError: If the XML or a declared version range is invalid.
    """
    try:
        root = ET.fromstring(xml_text.lstrip("﻿"))
    except ET.ParseError as exc:
        raise ValueError(f"Invalid nuspec for {package_id}: {exc}") from exc

    metadata = _child(root, "metadata")
    dependencies = _child(metadata, "dependencies") if metadata is not None else None
    if dependencies is None:
        return []

    elements: List[ET.Element] = []
    for child in dependencies:
        name = _local(child.tag)
        if name == "dependency":
            elements.append(child)
        elif name == "group":
            elements.extend(dep for dep in child if _local(dep.tag) == "dependency")

    decls: List[DependencyDecl] = []
    for elem in elements:
        dep_id = (elem.get("id") or "").strip()
        if not dep_id:
            continue
        raw_range = elem.get("version")
        try:
            version_range = parse_range(raw_range)
        except ValueError as exc:
            raise ValueError(f"Invalid range for dependency {dep_id} of {package_id}: {exc}") from exc
        decls.append(DependencyDecl(dep_id, version_range))

    result = distinct_dependencies(decls)
    if is_debug_enabled(logger):
        logger.debug(
            "Parsed nuspec dependencies",
            extra=extra_context(
                event="parse", component="nuspec", action="parse_dependencies",
                target=package_id, count=len(result), package_manager="nuget",
            ),
        )
    return result
