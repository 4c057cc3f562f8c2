"""Runtime configuration for the flatvm machine."""

import os
from dataclasses import dataclass
from typing import Mapping, Optional

# Environment variable consulted when --max-steps is not given
MAX_STEPS_ENV = "FLATVM_MAX_STEPS"


@dataclass
class MachineConfig:
    max_steps: Optional[int] = None  # None means run until the pointer leaves the stream
    trace: bool = False  # log one debug event per executed instruction


def max_steps_from_env(environ: Optional[Mapping[str, str]] = None) -> Optional[int]:
    """
    Read the step limit from the environment.

    Args:
        environ: Mapping to read from (defaults to os.environ)

    Returns:
        The positive step limit, or None when the variable is unset or empty

    Raises:
        ValueError: If the variable is set to something other than a positive integer
    """
    environ = os.environ if environ is None else environ
    raw = environ.get(MAX_STEPS_ENV, "").strip()
    if not raw:
        return None
    value = int(raw)
    if value <= 0:
        raise ValueError(f"{MAX_STEPS_ENV} must be a positive integer, got {raw!r}")
    return value
