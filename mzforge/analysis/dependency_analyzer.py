"""Dependency analyzer - checks declared dependencies and load order across a project."""

import heapq
import logging
from typing import Dict, Iterable, List, Set, Tuple

from mzforge.analysis.sources import SourceLike, as_sources
from mzforge.core.parser import HeaderDeclarations, HeaderParseError, scan_header
from mzforge.models.reports import DependencyIssue, DependencyReport

logger = logging.getLogger(__name__)

Edge = Tuple[str, str]


def analyze_dependencies(sources: Iterable[SourceLike]) -> DependencyReport:
    """Analyze plugin headers in load order.

    An edge X -> Y means X must load before Y. It comes from X being a
    dependency (@base) of Y, X naming Y in @orderBefore, or Y naming X in
    @orderAfter.

    Args:
        sources: Plugin sources in the project's actual load order, as
            PluginSource entries or (name, text) pairs. Only the main header
            of each text is read.

    Returns:
        DependencyReport
    """
    issues: List[DependencyIssue] = []
    headers: List[Tuple[str, HeaderDeclarations]] = []

    for source in as_sources(sources):
        if not source.readable:
            issues.append(_unreadable(source.label, source.error or "no content"))
            continue
        try:
            headers.append((source.name, scan_header(source.text)))
        except HeaderParseError as e:
            issues.append(_unreadable(source.label, str(e)))

    load_order = [name for name, _ in headers]
    position: Dict[str, int] = {}
    for index, name in enumerate(load_order):
        position.setdefault(name, index)

    issues.extend(_duplicates(load_order))

    # edge -> plugin whose header declares it
    edges: Dict[Edge, str] = {}
    for name, decl in headers:
        for dep in decl.dependencies:
            if dep not in position:
                issues.append(DependencyIssue(
                    kind="missing",
                    severity="error",
                    plugin=name,
                    message=f"'{name}' requires '{dep}' but it was not found in the project",
                    details=dep,
                ))
                continue
            edges.setdefault((dep, name), name)
        for other in decl.order_after:
            if other in position:
                edges.setdefault((other, name), name)
        for other in decl.order_before:
            if other in position:
                edges.setdefault((name, other), name)

    for (before, after), declared_by in edges.items():
        if before != after and position[before] > position[after]:
            issues.append(DependencyIssue(
                kind="order",
                severity="warning",
                plugin=declared_by,
                message=f"'{before}' must load before '{after}' but loads after it",
                details=(
                    f"{before} is at position {position[before] + 1}, "
                    f"{after} is at position {position[after] + 1}"
                ),
            ))

    graph = _adjacency(position, edges)
    cycles = _find_cycles(graph, position)
    for cycle in cycles:
        path = " -> ".join(cycle + [cycle[0]])
        issues.append(DependencyIssue(
            kind="cycle",
            severity="error",
            plugin=cycle[0],
            message=f"Circular dependency: {path}",
            details=path,
        ))

    suggested = [] if cycles else _topological_order(graph, position)
    health = _health(issues)
    logger.info(f"Dependency scan: {len(position)} plugins, {len(issues)} issues, health={health}")

    return DependencyReport(
        issues=issues,
        plugin_names=list(position),
        load_order=load_order,
        suggested_order=suggested,
        health=health,
    )


def _unreadable(label: str, reason: str) -> DependencyIssue:
    logger.warning(f"Could not read plugin {label}: {reason}")
    return DependencyIssue(
        kind="unreadable",
        severity="error",
        plugin=label,
        message=f"Could not read plugin file '{label}'",
        details=reason,
    )


def _duplicates(load_order: List[str]) -> List[DependencyIssue]:
    counts: Dict[str, int] = {}
    for name in load_order:
        counts[name] = counts.get(name, 0) + 1
    return [
        DependencyIssue(
            kind="duplicate",
            severity="warning",
            plugin=name,
            message=f"Plugin name '{name}' appears {count} times",
        )
        for name, count in counts.items()
        if count > 1
    ]


def _adjacency(position: Dict[str, int], edges: Dict[Edge, str]) -> Dict[str, List[str]]:
    graph: Dict[str, List[str]] = {name: [] for name in position}
    for before, after in edges:
        if after not in graph[before]:
            graph[before].append(after)
    for targets in graph.values():
        targets.sort(key=position.__getitem__)
    return graph


def _find_cycles(graph: Dict[str, List[str]], position: Dict[str, int]) -> List[List[str]]:
    """Distinct cycles found by depth-first search, each rotated to start at its earliest plugin."""
    white, gray, black = 0, 1, 2
    color = {name: white for name in graph}
    stack: List[str] = []
    seen: Set[Tuple[str, ...]] = set()
    cycles: List[List[str]] = []

    def visit(node: str) -> None:
        color[node] = gray
        stack.append(node)
        for target in graph[node]:
            if color[target] == gray:
                cycle = stack[stack.index(target):]
                start = min(range(len(cycle)), key=lambda i: position[cycle[i]])
                rotated = tuple(cycle[start:] + cycle[:start])
                if rotated not in seen:
                    seen.add(rotated)
                    cycles.append(list(rotated))
            elif color[target] == white:
                visit(target)
        stack.pop()
        color[node] = black

    for name in graph:
        if color[name] == white:
            visit(name)
    return cycles


def _topological_order(graph: Dict[str, List[str]], position: Dict[str, int]) -> List[str]:
    """Kahn's algorithm, always taking the ready plugin that loads earliest."""
    indegree = {name: 0 for name in graph}
    for targets in graph.values():
        for target in targets:
            indegree[target] += 1

    ready = [(position[name], name) for name, degree in indegree.items() if degree == 0]
    heapq.heapify(ready)
    order = []
    while ready:
        _, name = heapq.heappop(ready)
        order.append(name)
        for target in graph[name]:
            indegree[target] -= 1
            if indegree[target] == 0:
                heapq.heappush(ready, (position[target], target))

    return order if len(order) == len(graph) else []


def _health(issues: List[DependencyIssue]) -> str:
    if any(issue.severity == "error" for issue in issues):
        return "errors"
    if issues:
        return "warnings"
    return "ok"
