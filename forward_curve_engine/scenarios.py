from __future__ import annotations

import logging
from typing import Callable, Dict, Optional, Sequence

import numpy as np
import pandas as pd

from .cashflows import present_value
from .curves import (
    ForwardCurve,
    curve_from_shifted_rates,
    parallel_shift_bp,
    steepener_shift_bp,
    flattener_shift_bp,
)

logger = logging.getLogger(__name__)

ShiftFunc = Callable[[float], float]


def default_rate_scenarios() -> Dict[str, ShiftFunc]:
    return {
        "PAR_-50bp": parallel_shift_bp(-50),
        "PAR_-25bp": parallel_shift_bp(-25),
        "PAR_+25bp": parallel_shift_bp(+25),
        "PAR_+50bp": parallel_shift_bp(+50),
        "STEEPENER_25bp": steepener_shift_bp(25),
        "FLATTENER_25bp": flattener_shift_bp(25),
    }


def run_rate_scenarios(
    times: Sequence[float],
    amounts: Sequence[float],
    curve: ForwardCurve,
    extrapolation: float = np.nan,
    scenarios: Optional[Dict[str, ShiftFunc]] = None,
) -> pd.DataFrame:
    """
    Reprice cash flows under named forward curve shocks.

    Each shift function is applied at every knot time; the extrapolation
    rate is shifted by its value at infinity.
    """
    if scenarios is None:
        scenarios = default_rate_scenarios()

    base = present_value(times, amounts, curve, extrapolation)
    logger.debug("Running %d rate scenarios against %d knots", len(scenarios), curve.size)

    rows = []
    for name, shift in scenarios.items():
        scurve = curve_from_shifted_rates(curve, shift)
        shocked = present_value(times, amounts, scurve, extrapolation + shift(np.inf))
        rows.append(
            {
                "scenario": name,
                "pv_base": base,
                "pv_shocked": shocked,
                "pnl": shocked - base,
            }
        )

    return pd.DataFrame(rows, columns=["scenario", "pv_base", "pv_shocked", "pnl"])
