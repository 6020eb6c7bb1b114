"""Project-level dependency map built from per-file reports.

Pure post-processing: the map reads finished ``AnalysisReport``s and the
raw source of each file, and never calls back into the engine.
"""

from __future__ import annotations

import re
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from .models import AnalysisReport


class ProjectFile(BaseModel):
    """One analyzed file of a project."""

    model_config = ConfigDict(frozen=True)

    file_id: str
    name: str
    source_code: str
    report: AnalysisReport


class MapNode(BaseModel):
    """A file or function node.

    File nodes carry ``language`` and ``security``; function nodes carry
    ``parent`` (the file id) and ``line``.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    label: str
    type: str
    complexity: int
    language: str | None = None
    security: float | None = None
    parent: str | None = None
    line: int | None = None


class MapEdge(BaseModel):
    """Directed edge from the depending file to the file it depends on."""

    model_config = ConfigDict(frozen=True)

    source: str
    target: str
    type: str
    label: str


class DependencyMap(BaseModel):
    model_config = ConfigDict(frozen=True)

    nodes: list[MapNode] = Field(default_factory=list)
    edges: list[MapEdge] = Field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)


_LEADING_DOT_SLASH = re.compile(r"^\./")


def _file_nodes(project_file: ProjectFile) -> list[MapNode]:
    report = project_file.report
    nodes = [
        MapNode(
            id=project_file.file_id,
            label=project_file.name,
            type="file",
            complexity=report.complexity.cyclomatic,
            language=report.language,
            security=report.security.score,
        )
    ]
    for func in report.dependencies.functions:
        nodes.append(
            MapNode(
                id=f"{project_file.file_id}_{func.name}",
                label=func.name,
                type="function",
                complexity=func.complexity,
                parent=project_file.file_id,
                line=func.line,
            )
        )
    return nodes


def _import_edges(project_file: ProjectFile, files: list[ProjectFile]) -> list[MapEdge]:
    """Edges to the first other file whose name contains the import path."""
    edges: list[MapEdge] = []
    for import_path in project_file.report.dependencies.imports:
        needle = _LEADING_DOT_SLASH.sub("", import_path)
        if not needle:
            continue
        target = next((f for f in files if f.file_id != project_file.file_id and needle in f.name), None)
        if target is not None:
            edges.append(
                MapEdge(source=project_file.file_id, target=target.file_id, type="import", label=import_path)
            )
    return edges


def _call_edges(project_file: ProjectFile, files: list[ProjectFile]) -> list[MapEdge]:
    """Edges from every other file whose text mentions one of this file's exports."""
    edges: list[MapEdge] = []
    for name in dict.fromkeys(project_file.report.dependencies.exports):
        name_re = re.compile(rf"(?<![\w$]){re.escape(name)}(?![\w$])")
        for caller in files:
            if caller.file_id == project_file.file_id:
                continue
            if name_re.search(caller.source_code):
                edges.append(MapEdge(source=caller.file_id, target=project_file.file_id, type="call", label=name))
    return edges


def build_dependency_map(files: list[ProjectFile]) -> DependencyMap:
    """Build file/function nodes plus import and call edges.

    Args:
        files: Analyzed project files, in display order.

    Returns:
        The dependency map. Import edges are listed before call edges.
    """
    nodes: list[MapNode] = []
    import_edges: list[MapEdge] = []
    call_edges: list[MapEdge] = []
    for project_file in files:
        nodes.extend(_file_nodes(project_file))
        import_edges.extend(_import_edges(project_file, files))
        call_edges.extend(_call_edges(project_file, files))
    return DependencyMap(nodes=nodes, edges=import_edges + call_edges)
