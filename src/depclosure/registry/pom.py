"""POM reader: declared dependencies, with inheritance applied by the caller.

``read_pom`` captures one POM as written. The ``lineage`` functions take
a POM followed by its ancestors (nearest first) and apply Maven's
inheritance: properties and ``<dependencyManagement>`` flow down from
parents, dependencies declared by a parent are inherited, and versions
managed by imported BOMs fill the remaining gaps. Fetching the ancestors
and BOMs is left to the resolver.
"""
from __future__ import annotations

import logging
import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, List, Mapping, NamedTuple, Optional, Sequence, Tuple

from ..constants import Constants
from ..models import ArtifactCoordinate, Dependency, Exclusion, Scope
from .base import Descriptor

logger = logging.getLogger(__name__)

_PROPERTY = re.compile(r"\$\{([^}]+)\}")

# Dependency <type> values that do not map one-to-one onto a file extension.
_TYPE_HANDLERS: Dict[str, Tuple[str, str]] = {
    "test-jar": ("jar", "tests"),
    "bundle": ("jar", ""),
    "maven-plugin": ("jar", ""),
    "ejb": ("jar", ""),
    "ejb-client": ("jar", "client"),
    "java-source": ("jar", "sources"),
    "javadoc": ("jar", "javadoc"),
}

ManagedVersions = Dict[Tuple[str, str], str]


class PomParseError(ValueError):
    """The descriptor could not be read as a POM."""


class _Declared(NamedTuple):
    group_id: Optional[str]
    artifact_id: Optional[str]
    version: Optional[str]
    type: Optional[str]
    classifier: Optional[str]
    scope: Optional[str]
    optional: Optional[str]
    exclusions: FrozenSet[Exclusion]


@dataclass
class PomModel:
    """One POM as written: nothing inherited, nothing interpolated."""
    group_id: Optional[str]
    artifact_id: Optional[str]
    version: Optional[str]
    parent: Optional[ArtifactCoordinate] = None
    properties: Dict[str, str] = field(default_factory=dict)
    managed: List[_Declared] = field(default_factory=list)
    dependencies: List[_Declared] = field(default_factory=list)


def _namespace(root: ET.Element) -> str:
    if root.tag.startswith("{"):
        return root.tag[: root.tag.index("}") + 1]
    return ""


def _text(elem: Optional[ET.Element], tag: str, ns: str) -> Optional[str]:
    if elem is None:
        return None
    child = elem.find(f"{ns}{tag}")
    if child is None or child.text is None:
        return None
    return child.text.strip() or None


def _parse_xml(data: bytes, what: str) -> ET.Element:
    try:
        return ET.fromstring(data)
    except ET.ParseError as exc:
        raise PomParseError(f"Malformed {what}: {exc}") from exc


def _declared(block: Optional[ET.Element], ns: str) -> List[_Declared]:
    if block is None:
        return []
    return [
        _Declared(
            group_id=_text(dep, "groupId", ns),
            artifact_id=_text(dep, "artifactId", ns),
            version=_text(dep, "version", ns),
            type=_text(dep, "type", ns),
            classifier=_text(dep, "classifier", ns),
            scope=_text(dep, "scope", ns),
            optional=_text(dep, "optional", ns),
            exclusions=frozenset(
                Exclusion(_text(ex, "groupId", ns) or "*", _text(ex, "artifactId", ns) or "*")
                for ex in dep.findall(f"{ns}exclusions/{ns}exclusion")
            ),
        )
        for dep in block.findall(f"{ns}dependency")
    ]


def read_pom(pom_xml: bytes) -> PomModel:
    """Capture what a single POM declares; raises PomParseError on malformed XML."""
    root = _parse_xml(pom_xml, "POM")
    ns = _namespace(root)

    parent_elem = root.find(f"{ns}parent")
    parent = None
    if parent_elem is not None:
        group, artifact, version = (_text(parent_elem, t, ns) for t in ("groupId", "artifactId", "version"))
        if group and artifact and version and "${" not in version:
            parent = ArtifactCoordinate(group, artifact, version, "", Constants.DESCRIPTOR_EXTENSION)

    properties: Dict[str, str] = {}
    block = root.find(f"{ns}properties")
    if block is not None:
        for prop in block:
            name = prop.tag[len(ns):] if ns and prop.tag.startswith(ns) else prop.tag
            if prop.text is not None:
                properties[name] = prop.text.strip()

    return PomModel(
        group_id=_text(root, "groupId", ns) or _text(parent_elem, "groupId", ns),
        artifact_id=_text(root, "artifactId", ns),
        version=_text(root, "version", ns) or _text(parent_elem, "version", ns),
        parent=parent,
        properties=properties,
        managed=_declared(root.find(f"{ns}dependencyManagement/{ns}dependencies"), ns),
        dependencies=_declared(root.find(f"{ns}dependencies"), ns),
    )


def _properties(lineage: Sequence[PomModel]) -> Dict[str, str]:
    props: Dict[str, str] = {}
    for model in reversed(lineage):
        props.update(model.properties)
    project = lineage[0]
    builtins = (("groupId", project.group_id), ("artifactId", project.artifact_id), ("version", project.version))
    for prefix in ("project.", "pom.", ""):
        for name, value in builtins:
            if value:
                props.setdefault(f"{prefix}{name}", value)
    if project.parent is not None:
        props.setdefault("project.parent.groupId", project.parent.group_id)
        props.setdefault("project.parent.artifactId", project.parent.artifact_id)
        props.setdefault("project.parent.version", project.parent.version)
    return props


def _interpolate(value: Optional[str], props: Mapping[str, str]) -> Optional[str]:
    if value is None:
        return None
    # Nested references resolve in a few passes; unknown ones are left as-is.
    for _ in range(5):
        replaced = _PROPERTY.sub(lambda m: props.get(m.group(1), m.group(0)), value)
        if replaced == value:
            break
        value = replaced
    return value


def _resolved(version: Optional[str]) -> bool:
    return bool(version) and "${" not in version


def _is_import(entry: _Declared) -> bool:
    return (entry.scope or "").lower() == "import" and (entry.type or "") == "pom"


def managed_versions(lineage: Sequence[PomModel], imported: Optional[Mapping[Tuple[str, str], str]] = None) -> ManagedVersions:
    """Versions pinned by ``<dependencyManagement>`` across a lineage.

    Explicit entries override ``imported`` ones, and a child's entries
    override its parents'.
    """
    props = _properties(lineage)
    managed: ManagedVersions = dict(imported or {})
    for model in reversed(lineage):
        for entry in model.managed:
            if _is_import(entry):
                continue
            group = _interpolate(entry.group_id, props)
            artifact = _interpolate(entry.artifact_id, props)
            version = _interpolate(entry.version, props)
            if group and artifact and _resolved(version):
                managed[(group, artifact)] = version
    return managed


def bom_imports(lineage: Sequence[PomModel]) -> List[ArtifactCoordinate]:
    """BOMs imported into ``<dependencyManagement>``, in precedence order."""
    props = _properties(lineage)
    found: List[ArtifactCoordinate] = []
    for model in lineage:
        for entry in model.managed:
            if not _is_import(entry):
                continue
            group = _interpolate(entry.group_id, props)
            artifact = _interpolate(entry.artifact_id, props)
            version = _interpolate(entry.version, props)
            if not (group and artifact and _resolved(version)):
                logger.warning("Ignoring BOM import %s:%s with unresolvable version %s", group, artifact, version)
                continue
            coordinate = ArtifactCoordinate(group, artifact, version, "", Constants.DESCRIPTOR_EXTENSION)
            if coordinate not in found:
                found.append(coordinate)
    return found


def effective_dependencies(
    lineage: Sequence[PomModel], imported: Optional[Mapping[Tuple[str, str], str]] = None
) -> Tuple[List[Dependency], List[str]]:
    """Dependencies of ``lineage[0]`` after inheritance.

    Returns the dependencies in declaration order (the POM's own first,
    then those inherited from each ancestor) and the ``group:artifact``
    of every declaration whose version could not be determined.
    """
    props = _properties(lineage)
    managed = managed_versions(lineage, imported)
    project = lineage[0].artifact_id or "<unknown>"

    dependencies: List[Dependency] = []
    unresolved: List[str] = []
    seen = set()
    for model in lineage:
        for entry in model.dependencies:
            group = _interpolate(entry.group_id, props)
            artifact = _interpolate(entry.artifact_id, props)
            if not group or not artifact:
                continue
            dep_type = _interpolate(entry.type, props) or Constants.DEFAULT_EXTENSION
            extension, implied_classifier = _TYPE_HANDLERS.get(dep_type, (dep_type, ""))
            classifier = _interpolate(entry.classifier, props) or implied_classifier
            identity = (group, artifact, extension, classifier)
            if identity in seen:
                # Redeclared by a descendant, which takes precedence.
                continue
            seen.add(identity)

            version = _interpolate(entry.version, props) or managed.get((group, artifact))
            if not _resolved(version):
                unresolved.append(f"{group}:{artifact}")
                continue
            try:
                scope = Scope.parse(_interpolate(entry.scope, props))
            except ValueError:
                logger.warning("Skipping %s:%s declared by %s: unsupported scope", group, artifact, project)
                continue
            optional = (_interpolate(entry.optional, props) or "").lower() == "true"
            dependencies.append(
                Dependency(
                    coordinate=ArtifactCoordinate(group, artifact, version, classifier, extension),
                    scope=scope,
                    optional=optional,
                    exclusions=entry.exclusions,
                )
            )
    return dependencies, unresolved


def read_descriptor(pom_xml: bytes) -> Descriptor:
    """Describe a POM on its own; parents and BOMs it names are listed, not applied."""
    lineage = [read_pom(pom_xml)]
    dependencies, unresolved = effective_dependencies(lineage)
    return Descriptor(
        tuple(dependencies),
        raw=pom_xml,
        parent=lineage[0].parent,
        imports=tuple(bom_imports(lineage)),
        unresolved=tuple(unresolved),
    )


def parse_metadata_versions(metadata_xml: bytes) -> List[str]:
    """Return versions listed in maven-metadata.xml in source order."""
    root = _parse_xml(metadata_xml, "maven-metadata.xml")
    ns = _namespace(root)
    versions: List[str] = []
    versions_elem = root.find(f"{ns}versioning/{ns}versions")
    if versions_elem is None:
        return versions
    for item in versions_elem.findall(f"{ns}version"):
        if item.text and item.text.strip():
            versions.append(item.text.strip())
    return versions
