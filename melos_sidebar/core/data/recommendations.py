"""
Recommendation catalog — suggested scripts for a Melos workspace.

Declaration order is the order the "Recommendations" group lists
missing entries in.  ``dependencies`` name other entries of this table.
"""

from __future__ import annotations

from melos_sidebar.core.models.script import RecommendedScript

RECOMMENDED_SCRIPTS: tuple[RecommendedScript, ...] = (
    RecommendedScript(
        name="lint",
        run="melos run analyze",
        description="Run dart analyze in all packages",
        dependencies=("analyze",),
    ),
    RecommendedScript(
        name="analyze",
        run="melos exec -- dart analyze .",
        description="Run dart analyze in all packages",
    ),
    RecommendedScript(
        name="format",
        run="dart format .",
        description="Format all code",
    ),
    RecommendedScript(
        name="test",
        run="melos run test:select",
        description="Run tests interactively",
        dependencies=("test:select",),
    ),
    RecommendedScript(
        name="test:select",
        run='melos exec --dir-exists="test" --fail-fast -- flutter test',
        description="Run flutter test for selected package",
    ),
    RecommendedScript(
        name="codegen",
        run=(
            'melos exec -c 1 --depends-on="build_runner" -- '
            "flutter pub run build_runner build --delete-conflicting-outputs"
        ),
        description="Run build_runner in packages that depend on it",
    ),
    RecommendedScript(
        name="fix",
        run="melos exec -- dart fix --apply",
        description="Apply automatic fixes to all packages",
    ),
    RecommendedScript(
        name="upgrade",
        run="melos exec -- flutter pub upgrade",
        description="Upgrade dependencies in all packages",
    ),
)
