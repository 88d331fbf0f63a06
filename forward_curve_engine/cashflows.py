from __future__ import annotations

import logging
from typing import Optional, Sequence, Tuple

import numpy as np
import pandas as pd
from scipy.optimize import brentq

from . import pwflat
from .config import SpreadSolverConfig
from .curves import ForwardCurve
from .utils import lower_bound

logger = logging.getLogger(__name__)


def _flows(times: Sequence[float], amounts: Sequence[float]) -> Tuple[np.ndarray, np.ndarray]:
    u = np.asarray(times)
    c = np.asarray(amounts)
    if u.shape != c.shape:
        raise ValueError(f"Cash flow times and amounts differ in length: {len(u)} != {len(c)}")
    return u, c


def present_value(
    times: Sequence[float],
    amounts: Sequence[float],
    curve: ForwardCurve,
    extrapolation: float = np.nan,
) -> float:
    """
    Sum of amounts[j] * D(times[j]).

    A single undefined discount factor (negative time, or a time past the
    last knot with no extrapolation rate) makes the whole value NaN.
    """
    u, c = _flows(times, amounts)
    t, f = curve.times, curve.rates

    p = 0.0
    for i in range(len(u)):
        p += c[i] * pwflat.discount(u[i], t, f, extrapolation)

    return p


def duration(
    times: Sequence[float],
    amounts: Sequence[float],
    curve: ForwardCurve,
    extrapolation: float = np.nan,
) -> float:
    """Derivative of present value with respect to a parallel shift of the forward curve."""
    u, c = _flows(times, amounts)
    t, f = curve.times, curve.rates

    d = 0.0
    for i in range(len(u)):
        d -= u[i] * c[i] * pwflat.discount(u[i], t, f, extrapolation)

    return d


def partial_duration(
    times: Sequence[float],
    amounts: Sequence[float],
    curve: ForwardCurve,
    extrapolation: float = np.nan,
) -> float:
    """
    Derivative of present value with respect to a parallel shift of the
    forward curve beyond its last knot time.

    Cash flow times must be ascending: the first flow at or after the last
    knot is located by binary search.
    """
    u, c = _flows(times, amounts)
    t, f = curve.times, curve.rates
    n = len(t)

    # first cash flow at or past the end of the forward curve
    i0 = 0 if n == 0 else lower_bound(u, t[n - 1])
    t0 = 0.0 if n == 0 else t[n - 1]

    d = 0.0
    for i in range(i0, len(u)):
        d -= (u[i] - t0) * c[i] * pwflat.discount(u[i], t, f, extrapolation)

    return d


def convexity(
    times: Sequence[float],
    amounts: Sequence[float],
    curve: ForwardCurve,
    extrapolation: float = np.nan,
) -> float:
    """Second derivative of present value with respect to a parallel shift."""
    u, c = _flows(times, amounts)
    t, f = curve.times, curve.rates

    x = 0.0
    for i in range(len(u)):
        x += u[i] * u[i] * c[i] * pwflat.discount(u[i], t, f, extrapolation)

    return x


def bucket_durations(
    times: Sequence[float],
    amounts: Sequence[float],
    curve: ForwardCurve,
    extrapolation: float = np.nan,
) -> np.ndarray:
    """
    Derivative of present value with respect to shifting one forward segment.

    Returns n + 1 buckets: bucket k < n covers (times[k-1], times[k]] and
    bucket n covers everything past the last knot. Buckets sum to
    :func:`duration`; the last one equals :func:`partial_duration` for
    ascending cash flows.
    """
    u, c = _flows(times, amounts)
    t = np.asarray(curve.times, dtype=float)
    f = curve.rates

    left = np.r_[0.0, t]
    right = np.r_[t, np.inf]

    out = np.zeros(len(t) + 1, dtype=float)
    for i in range(len(u)):
        overlap = np.clip(np.minimum(u[i], right) - left, 0.0, None)
        out -= overlap * c[i] * pwflat.discount(u[i], t, f, extrapolation)

    return out


def spread_present_value(
    times: Sequence[float],
    amounts: Sequence[float],
    curve: ForwardCurve,
    spread: float,
    extrapolation: float = np.nan,
) -> float:
    """
    Present value with a constant spread applied to ALL cashflows:
      D_spr(t) = D(t) * exp(-spread * t)
    """
    u, c = _flows(times, amounts)
    t, f = curve.times, curve.rates

    p = 0.0
    for i in range(len(u)):
        p += c[i] * pwflat.discount(u[i], t, f, extrapolation) * np.exp(-spread * u[i])

    return p


def z_spread(
    times: Sequence[float],
    amounts: Sequence[float],
    curve: ForwardCurve,
    price: float,
    extrapolation: float = np.nan,
    config: Optional[SpreadSolverConfig] = None,
) -> float:
    """
    Constant spread over the forward curve that reprices the cash flows to `price`.

    Raises ValueError if the present value is undefined on the curve or the
    root is not bracketed by [config.lo, config.hi].
    """
    if config is None:
        config = SpreadSolverConfig()

    def residual(s: float) -> float:
        return spread_present_value(times, amounts, curve, s, extrapolation) - price

    fa, fb = residual(config.lo), residual(config.hi)
    if np.isnan(fa) or np.isnan(fb):
        raise ValueError("Present value undefined on this curve; supply an extrapolation rate.")
    if fa * fb > 0:
        raise ValueError("Root not bracketed: price inconsistent with spread bounds.")

    s = brentq(residual, config.lo, config.hi, maxiter=config.maxiter, xtol=config.xtol)
    logger.debug("Solved z-spread %.10f for price %s", s, price)
    return float(s)


def cashflow_table(
    times: Sequence[float],
    amounts: Sequence[float],
    curve: ForwardCurve,
    extrapolation: float = np.nan,
) -> pd.DataFrame:
    u, c = _flows(times, amounts)
    t, f = curve.times, curve.rates

    dfs = np.array([pwflat.discount(x, t, f, extrapolation) for x in u], dtype=float)

    out = pd.DataFrame({"time": u, "amount": c, "discount": dfs})
    out["pv"] = out["amount"] * out["discount"]
    out["duration_contrib"] = -out["time"] * out["pv"]
    return out
