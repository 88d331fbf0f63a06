from __future__ import annotations

from typing import Optional, Sequence

import numpy as np
import pandas as pd

from .cashflows import bucket_durations, convexity, duration, partial_duration, present_value
from .config import RiskConfig
from .curves import ForwardCurve, bumped_knot_curve, shocked_curve_parallel


def parallel_dv01(
    times: Sequence[float],
    amounts: Sequence[float],
    curve: ForwardCurve,
    extrapolation: float = np.nan,
    bp: float = 1.0,
) -> float:
    """PV change when every forward rate, extrapolation included, moves up by bp."""
    base = present_value(times, amounts, curve, extrapolation)
    shocked = shocked_curve_parallel(curve, shift_bp=bp)
    return present_value(times, amounts, shocked, extrapolation + bp / 10000.0) - base


def extrapolation_dv01(
    times: Sequence[float],
    amounts: Sequence[float],
    curve: ForwardCurve,
    extrapolation: float = np.nan,
    bp: float = 1.0,
) -> float:
    """PV change when only the rate past the last knot moves up by bp."""
    base = present_value(times, amounts, curve, extrapolation)
    return present_value(times, amounts, curve, extrapolation + bp / 10000.0) - base


def bucket_dv01(
    times: Sequence[float],
    amounts: Sequence[float],
    curve: ForwardCurve,
    extrapolation: float = np.nan,
    bp: float = 1.0,
) -> np.ndarray:
    """One bump per knot segment, then the extrapolation segment; sums to ~parallel_dv01."""
    base = present_value(times, amounts, curve, extrapolation)

    out = []
    for k in range(curve.size):
        scurve = bumped_knot_curve(curve, k, bp)
        out.append(present_value(times, amounts, scurve, extrapolation) - base)
    out.append(extrapolation_dv01(times, amounts, curve, extrapolation, bp))

    return np.array(out, dtype=float)


def duration_from_dv01(dv01: float, pv: float, bp: float = 1.0) -> float:
    """Modified duration implied by a DV01; NaN when there is no value to scale by."""
    if pv == 0:
        return np.nan
    return -dv01 / (pv * bp / 10000.0)


def risk_report(
    times: Sequence[float],
    amounts: Sequence[float],
    curve: ForwardCurve,
    extrapolation: float = np.nan,
    config: Optional[RiskConfig] = None,
) -> pd.DataFrame:
    """
    Analytic sensitivities next to their bump-and-reprice counterparts.

    Analytic derivatives are scaled by the bump size so both columns are in
    PV units per bump.
    """
    if config is None:
        config = RiskConfig()

    bp = config.bump_bp
    h = bp / 10000.0

    pv = present_value(times, amounts, curve, extrapolation)
    up = shocked_curve_parallel(curve, shift_bp=bp)
    down = shocked_curve_parallel(curve, shift_bp=-bp)
    pv_up = present_value(times, amounts, up, extrapolation + h)
    pv_down = present_value(times, amounts, down, extrapolation - h)

    analytic_buckets = bucket_durations(times, amounts, curve, extrapolation) * h
    bumped_buckets = bucket_dv01(times, amounts, curve, extrapolation, bp)

    rows = [
        ("parallel", duration(times, amounts, curve, extrapolation) * h, pv_up - pv),
        ("extrapolation", partial_duration(times, amounts, curve, extrapolation) * h,
         extrapolation_dv01(times, amounts, curve, extrapolation, bp)),
        ("convexity", convexity(times, amounts, curve, extrapolation) * h * h, pv_up + pv_down - 2 * pv),
    ]
    for k in range(len(analytic_buckets)):
        rows.append((f"bucket_{k}", analytic_buckets[k], bumped_buckets[k]))

    out = pd.DataFrame(rows, columns=["measure", "analytic", "bumped"])
    out["diff"] = out["bumped"] - out["analytic"]
    return out
