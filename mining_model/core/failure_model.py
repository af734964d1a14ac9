# mining_model/core/failure_model.py
from __future__ import annotations

import math

from mining_model.config import settings


def cumulative_failure_fraction(
    age_months: float,
    lifespan_months: float,
    shape: float | None = None,
    scale: float | None = None,
) -> float:
    """
    Fraction of a fleet's units that have failed by `age_months`.

    Weibull-like CDF 1 - exp(-((age/lifespan)/scale) ** shape), scaled so
    it never exceeds FAILURE_CAP. With the default steep shape, failures
    stay under 5% until 80% of lifespan, then accelerate sharply:

    - age <= 0          -> 0
    - age >= lifespan   -> FAILURE_CAP (0.95)
    """
    cap = settings.FAILURE_CAP
    if age_months <= 0:
        return 0.0
    if lifespan_months <= 0 or age_months >= lifespan_months:
        return cap

    shape = settings.FAILURE_SHAPE if shape is None else shape
    scale = settings.FAILURE_SCALE if scale is None else scale

    normalized_age = age_months / lifespan_months
    cumulative = 1.0 - math.exp(-((normalized_age / scale) ** shape))
    return min(cumulative * cap, cap)
