"""Error taxonomy for filter wiring problems."""

from __future__ import annotations


class ConfigurationError(ValueError):
    """A filter wiring bug: fatal, never a runtime data condition."""


class FilterNotFoundError(ConfigurationError):
    """Raised when a filter name or key is not registered."""

    def __init__(self, key: str, scope: str = "collection"):
        super().__init__(f"No filter '{key}' in {scope}")
        self.key = key
        self.scope = scope


class FilterCycleError(ConfigurationError):
    """Raised when dependent filter keys form a cycle."""

    def __init__(self, cycle: list[str]):
        super().__init__("Cyclic filter dependency: " + " -> ".join(cycle))
        self.cycle = cycle
