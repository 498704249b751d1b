"""Engine tunables, with environment overrides."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, fields, replace
from typing import Mapping

logger = logging.getLogger(__name__)

ENV_PREFIX = "ICE_"


@dataclass(frozen=True)
class EngineSettings:
    """Knobs for stage generation, solving and scoring.

    Attributes:
        max_retries: Generation attempts before ``GenerationFailed``.
        solver_state_limit: Expansion cap for the solver during generation
            and hints.
        par_fail_factor: The attempt fails once the move counter exceeds
            ``par * par_fail_factor`` without clearing.
        star_slack: Moves over par that still earn two stars.
        seed: Seed for the session's random source, ``None`` for entropy.
    """

    max_retries: int = 30
    solver_state_limit: int = 200_000
    par_fail_factor: int = 3
    star_slack: int = 2
    seed: int | None = None

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> EngineSettings:
        """Read ``ICE_<FIELD>`` overrides, e.g. ``ICE_MAX_RETRIES=10``.

        Unparsable values are logged and ignored.
        """
        environ = os.environ if environ is None else environ
        overrides: dict[str, int] = {}
        for f in fields(cls):
            name = ENV_PREFIX + f.name.upper()
            raw = environ.get(name)
            if raw is None or raw.strip() == "":
                continue
            try:
                value = int(raw)
            except ValueError:
                logger.warning("Ignoring %s=%r: not an integer", name, raw)
                continue
            if value < 0 or (value == 0 and f.name != "seed"):
                logger.warning("Ignoring %s=%r: out of range", name, raw)
                continue
            overrides[f.name] = value
        return replace(cls(), **overrides)

    def with_overrides(self, **values: int | None) -> EngineSettings:
        """Copy with the given non-``None`` values replaced."""
        return replace(self, **{k: v for k, v in values.items() if v is not None})
