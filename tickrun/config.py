"""Runtime configuration.

The budget fraction can be overridden from the environment:
    export TICKRUN_BUDGET_FRACTION=0.75
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from tickrun.host import Host
    from tickrun.runtime import Runtime

BUDGET_FRACTION_ENV_KEY = "TICKRUN_BUDGET_FRACTION"

DEFAULT_BUDGET_FRACTION = 0.9


@dataclass(frozen=True)
class RuntimeConfig:
    """Configuration for a Runtime.

    Args:
        budget_fraction: Fraction of the per-cycle allotment the runtime may use.
            The runtime keeps resuming tasks while
            ``host.usage_fraction() <= budget_fraction``. Must be in (0, 1].
    """

    budget_fraction: float = DEFAULT_BUDGET_FRACTION

    def __post_init__(self) -> None:
        if isinstance(self.budget_fraction, bool) or not isinstance(
            self.budget_fraction, (int, float)
        ):
            raise TypeError(
                f"budget_fraction must be a number, got {type(self.budget_fraction).__name__}"
            )
        if not 0.0 < self.budget_fraction <= 1.0:
            raise ValueError(
                f"budget_fraction must be in (0, 1], got {self.budget_fraction}"
            )

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> RuntimeConfig:
        """Build a config from ``TICKRUN_BUDGET_FRACTION``, falling back to defaults."""
        env = os.environ if environ is None else environ
        raw = env.get(BUDGET_FRACTION_ENV_KEY)
        if raw is None or not raw.strip():
            return cls()
        try:
            fraction = float(raw)
        except ValueError:
            raise ValueError(
                f"{BUDGET_FRACTION_ENV_KEY} must be a float, got {raw!r}"
            ) from None
        return cls(budget_fraction=fraction)


class Builder:
    """Fluent constructor for a Runtime.

    Example:
        runtime = Builder().budget_fraction(0.75).build(host)
    """

    def __init__(self, config: RuntimeConfig | None = None) -> None:
        self._config = config or RuntimeConfig()

    def budget_fraction(self, fraction: float) -> Builder:
        self._config = replace(self._config, budget_fraction=fraction)
        return self

    @property
    def config(self) -> RuntimeConfig:
        return self._config

    def build(self, host: Host) -> Runtime:
        from tickrun.runtime import Runtime

        return Runtime(host, self._config)


__all__ = [
    "BUDGET_FRACTION_ENV_KEY",
    "DEFAULT_BUDGET_FRACTION",
    "Builder",
    "RuntimeConfig",
]
