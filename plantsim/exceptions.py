"""PlantSim exception hierarchy.

Biological outcomes (starvation, old age) are state transitions, never
exceptions. Only configuration problems and broken structural invariants
are raised.
"""


class PlantSimError(Exception):
    """Root of all PlantSim exceptions."""


class ConfigurationError(PlantSimError, ValueError):
    """Invalid simulation config, species data, or strategy assignment.

    Raised before the first tick; the simulation never runs on a
    partially valid species table.
    """


class InvariantViolation(PlantSimError, RuntimeError):
    """A plant's organ tree is structurally broken (programming defect)."""
