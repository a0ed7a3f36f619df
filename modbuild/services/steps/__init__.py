"""Build steps and presets."""

from modbuild.services.steps.build_steps import BuildSteps, Toolchain, create_registry
from modbuild.services.steps.registry import PRESETS, Action, StepRegistry, expand

__all__ = [
    "Action",
    "BuildSteps",
    "PRESETS",
    "StepRegistry",
    "Toolchain",
    "create_registry",
    "expand",
]
