"""Seed specifications and their application to the process RNG state.

An integer seed expands into three named settings::

    <prefix>.seed         the integer itself
    <prefix>.kind         uniform generator, always "Mersenne-Twister"
    <prefix>.normal.kind  normal generator, always "Box-Muller"

Both Python's ``random`` module and NumPy's legacy global generator are
Mersenne-Twister based, so those are the only supported values. Applying a
spec mutates process-wide state; hold ``SEED_LOCK`` from seeding until the
seeded work has finished.
"""
from __future__ import annotations

import logging
import math
import random
import threading
from numbers import Integral, Real
from typing import Any, Dict, Optional, Tuple, Union

import numpy as np
from pydantic import BaseModel, ConfigDict

from taskrun.config import get_config
from taskrun.errors import ValidationError

from .schema import ParameterSetting

logger = logging.getLogger(__name__)

SEED_COMPONENTS = ("seed", "kind", "normal.kind")
SUPPORTED_KINDS = {"kind": {"Mersenne-Twister"}, "normal.kind": {"Box-Muller"}}
DEFAULT_KIND = "Mersenne-Twister"
DEFAULT_NORMAL_KIND = "Box-Muller"
MAX_SEED = 2**32 - 1

SEED_LOCK = threading.RLock()


class SeedSpec(BaseModel):
    model_config = ConfigDict(frozen=True)

    prefix: str
    parameters: Tuple[ParameterSetting, ...]

    def components(self) -> Dict[str, str]:
        """Settings keyed by component, with the prefix stripped."""
        offset = len(self.prefix) + 1
        return {
            p.name[offset:]: p.value
            for p in self.parameters
            if p.name.startswith(self.prefix + ".")
        }

    @property
    def seed(self) -> int:
        return int(self.components()["seed"])

    def with_component(self, component: Optional[str]) -> "SeedSpec":
        return self.model_copy(
            update={
                "parameters": tuple(
                    p.model_copy(update={"component": component}) for p in self.parameters
                )
            }
        )


def _as_seed_int(seed: Any) -> int:
    if isinstance(seed, bool):
        raise ValidationError("seed must be an integer, got a bool")
    if isinstance(seed, Integral):
        value = int(seed)
    elif isinstance(seed, Real):
        if not math.isfinite(float(seed)) or not float(seed).is_integer():
            raise ValidationError(f"seed must be a finite integer, got {seed!r}")
        value = int(seed)
    else:
        raise ValidationError(f"seed must be an integer or a SeedSpec, got {type(seed).__name__}")
    if value < 0 or value > MAX_SEED:
        raise ValidationError(f"seed must be between 0 and {MAX_SEED}, got {value}")
    return value


def make_seed_spec(seed: Any, prefix: Optional[str] = None) -> SeedSpec:
    """Expand an integer seed into the named seed settings."""
    value = _as_seed_int(seed)
    prefix = prefix or get_config().seed_prefix
    values = (str(value), DEFAULT_KIND, DEFAULT_NORMAL_KIND)
    return SeedSpec(
        prefix=prefix,
        parameters=tuple(
            ParameterSetting(name=f"{prefix}.{component}", value=v)
            for component, v in zip(SEED_COMPONENTS, values)
        ),
    )


def validate_seed_spec(spec: SeedSpec) -> SeedSpec:
    components = spec.components()
    missing = [c for c in SEED_COMPONENTS if c not in components]
    if missing:
        raise ValidationError(
            f"seed spec is missing components: {', '.join(spec.prefix + '.' + c for c in missing)}"
        )
    try:
        seed = int(components["seed"])
    except ValueError as exc:
        raise ValidationError(f"seed component is not an integer: {components['seed']!r}") from exc
    _as_seed_int(seed)
    for component, allowed in SUPPORTED_KINDS.items():
        if components[component] not in allowed:
            raise ValidationError(
                f"unsupported {component} '{components[component]}', expected one of {sorted(allowed)}"
            )
    return spec


def coerce_seed(seed: Union[int, SeedSpec], prefix: Optional[str] = None) -> SeedSpec:
    if isinstance(seed, SeedSpec):
        return validate_seed_spec(seed)
    return make_seed_spec(seed, prefix=prefix)


def apply_seed_spec(spec: SeedSpec) -> None:
    """Seed Python's and NumPy's global generators from ``spec``."""
    validate_seed_spec(spec)
    seed = spec.seed
    random.seed(seed)
    np.random.seed(seed)
    logger.debug("Applied seed %d (%s)", seed, spec.prefix)


__all__ = [
    "SEED_COMPONENTS",
    "SEED_LOCK",
    "SeedSpec",
    "apply_seed_spec",
    "coerce_seed",
    "make_seed_spec",
    "validate_seed_spec",
]
