"""
Recommendations — dependency closure and catalog validation.

The catalog is a directed graph keyed by script name: an edge
``lint → analyze`` means "lint needs analyze".  Resolution is an
iterative depth-first walk; validation uses Kahn's algorithm.
No I/O.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence

from melos_sidebar.core.data.recommendations import RECOMMENDED_SCRIPTS
from melos_sidebar.core.models.script import RecommendedScript, ScriptRecord

logger = logging.getLogger(__name__)


def _names(registry: Iterable[ScriptRecord | str]) -> set[str]:
    return {s if isinstance(s, str) else s.name for s in registry}


def _index(catalog: Sequence[RecommendedScript]) -> dict[str, RecommendedScript]:
    # First declaration wins on duplicate names
    index: dict[str, RecommendedScript] = {}
    for entry in catalog:
        index.setdefault(entry.name, entry)
    return index


def get_recommendation(
    name: str,
    catalog: Sequence[RecommendedScript] = RECOMMENDED_SCRIPTS,
) -> RecommendedScript | None:
    """Look up a catalog entry by name."""
    return _index(catalog).get(name)


def missing_recommendations(
    registry: Iterable[ScriptRecord | str],
    catalog: Sequence[RecommendedScript] = RECOMMENDED_SCRIPTS,
) -> list[RecommendedScript]:
    """Catalog entries whose name is absent from the registry, in catalog order."""
    existing = _names(registry)
    return [rec for rec in catalog if rec.name not in existing]


def resolve(
    requested: str,
    registry: Iterable[ScriptRecord | str],
    catalog: Sequence[RecommendedScript] = RECOMMENDED_SCRIPTS,
) -> list[RecommendedScript]:
    """Compute the entries to insert for a requested recommendation.

    Pre-order depth-first walk from ``requested`` over dependency edges:
    a node is emitted on first visit, before its dependencies, so the
    requested entry comes first.  Each name appears at most once, and
    the visited set makes cyclic declarations terminate.

    Names already in the registry are left out of the result, but their
    dependencies are still walked.

    Args:
        requested: Catalog name the user asked for.
        registry: Current scripts (records or plain names).
        catalog: Recommendation catalog.

    Returns:
        Ordered, deduplicated entries to insert.  Empty if ``requested``
        is not in the catalog.
    """
    index = _index(catalog)
    existing = _names(registry)

    result: list[RecommendedScript] = []
    visited: set[str] = set()
    stack: list[str] = [requested]

    while stack:
        name = stack.pop()
        if name in visited:
            continue
        entry = index.get(name)
        if entry is None:
            if name == requested:
                logger.debug("'%s' is not a recommended script", name)
            continue
        visited.add(name)

        if name not in existing:
            result.append(entry)

        # Reversed so the first dependency is popped (visited) first
        for dep in reversed(entry.dependencies):
            if dep not in visited:
                stack.append(dep)

    logger.debug(
        "Resolved '%s' → %s", requested, [e.name for e in result],
    )
    return result


def validate_catalog(
    catalog: Sequence[RecommendedScript] = RECOMMENDED_SCRIPTS,
) -> list[str]:
    """Report authoring problems in a recommendation catalog.

    Checks for:
    - Duplicate names
    - Dependencies on names not in the catalog
    - Dependency cycles (Kahn's algorithm)

    Problems are reported, not enforced: ``resolve()`` tolerates all of them.

    Returns:
        List of error strings (empty = valid).
    """
    errors: list[str] = []

    seen: set[str] = set()
    for entry in catalog:
        if entry.name in seen:
            errors.append(f"Duplicate recommended script: {entry.name}")
        seen.add(entry.name)

    index = _index(catalog)
    for entry in index.values():
        for dep in entry.dependencies:
            if dep not in index:
                errors.append(
                    f"Recommended script '{entry.name}' depends on unknown script '{dep}'"
                )

    # Cycle detection over known edges only
    in_degree: dict[str, int] = {name: 0 for name in index}
    dependents: dict[str, list[str]] = {name: [] for name in index}
    for entry in index.values():
        for dep in entry.dependencies:
            if dep in index:
                in_degree[entry.name] += 1
                dependents[dep].append(entry.name)

    queue = [name for name, deg in in_degree.items() if deg == 0]
    processed = 0
    while queue:
        node = queue.pop(0)
        processed += 1
        for child in dependents[node]:
            in_degree[child] -= 1
            if in_degree[child] == 0:
                queue.append(child)

    if processed != len(index):
        cycle_nodes = sorted(n for n, deg in in_degree.items() if deg > 0)
        errors.append(
            f"Dependency cycle among recommended scripts: {', '.join(cycle_nodes)}"
        )

    return errors
