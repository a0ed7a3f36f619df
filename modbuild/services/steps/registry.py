"""Step presets and the step-name to action table."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from types import MappingProxyType

from modbuild.core.result import Result
from modbuild.core.step_result import StepFailure

__all__ = ["Action", "PRESETS", "StepRegistry", "expand"]

type Action = Callable[[], Result[None, StepFailure]]

PRESETS: Mapping[str, tuple[str, ...]] = MappingProxyType(
    {
        "Build": (
            "Setup",
            "Clean",
            "TestSyntax",
            "Merge",
            "ImportDependencies",
            "BuildVSSolution",
            "UpdateMetadata",
        ),
        "Test": ("VSUnitTest", "PSUnitTest"),
        "Release": ("UpdateVersion",),
    }
)

_PRESETS_BY_KEY = {name.casefold(): steps for name, steps in PRESETS.items()}


def expand(names: Iterable[str]) -> list[str]:
    """Replace preset names with their steps, in place and in order.

    Presets only contain atomic steps, so expansion is a single pass. Names
    that are not presets pass through unchanged.
    """
    expanded: list[str] = []
    for name in names:
        preset = _PRESETS_BY_KEY.get(name.casefold())
        if preset is None:
            expanded.append(name)
        else:
            expanded.extend(preset)
    return expanded


class StepRegistry:
    """Maps step names (case-insensitive) to zero-argument actions."""

    def __init__(self, actions: Mapping[str, Action]) -> None:
        self._names = tuple(actions)
        self._actions = {name.casefold(): action for name, action in actions.items()}

    def lookup(self, name: str) -> Action | None:
        """Return the action for name, or None when it is not registered."""
        return self._actions.get(name.casefold())

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.casefold() in self._actions

    def names(self) -> tuple[str, ...]:
        return self._names
