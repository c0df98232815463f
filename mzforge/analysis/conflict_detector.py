"""Conflict detector - finds class methods overridden by more than one plugin."""

import logging
from typing import Dict, Iterable, List, Tuple

from mzforge.analysis.override_extractor import MethodTouch, extract_touches
from mzforge.analysis.sources import SourceLike, as_sources
from mzforge.models.reports import Conflict, ConflictReport

logger = logging.getLogger(__name__)


def detect_conflicts(sources: Iterable[SourceLike]) -> ConflictReport:
    """Group method touches across plugins and report shared methods.

    Args:
        sources: Plugin sources in load order, as PluginSource entries or
            (name, text) pairs

    Returns:
        ConflictReport with warnings first, then ordered by identifier
    """
    grouped: Dict[Tuple[str, str, bool], List[Tuple[str, MethodTouch]]] = {}
    skipped: List[str] = []
    total = 0

    for source in as_sources(sources):
        if not source.readable:
            logger.warning(f"Skipping unreadable plugin {source.label}: {source.error}")
            skipped.append(source.label)
            continue
        touches = extract_touches(source.text)
        total += len(touches)
        for touch in touches:
            grouped.setdefault(touch.key, []).append((source.name, touch))

    conflicts = []
    for (class_name, method_name, static), entries in grouped.items():
        plugins = list(dict.fromkeys(name for name, _ in entries))
        if len(plugins) < 2:
            continue
        conflicts.append(_conflict(class_name, method_name, static, plugins, entries))

    conflicts.sort(key=lambda c: (c.severity != "warning", c.method, c.static))
    logger.info(f"Conflict scan: {total} overrides, {len(conflicts)} shared methods")

    return ConflictReport(
        conflicts=conflicts,
        total_overrides=total,
        health="conflicts" if conflicts else "clean",
        skipped=skipped,
    )


def _conflict(
    class_name: str,
    method_name: str,
    static: bool,
    plugins: List[str],
    entries: List[Tuple[str, MethodTouch]],
) -> Conflict:
    """Classify one shared method.

    warning: two or more plugins replace the method, so their versions stack.
    info: at most one plugin replaces it and the rest only capture it.
    """
    later = [touch for _, touch in entries[1:]]
    assigners = sum(1 for _, touch in entries if touch.assigned)
    severity = "warning" if assigners >= 2 else "info"
    destructive = any(touch.assigned and not touch.captured for touch in later)

    return Conflict(
        method=f"{class_name}.{method_name}",
        class_name=class_name,
        method_name=method_name,
        static=static,
        severity=severity,
        plugins=plugins,
        destructive=destructive,
    )
