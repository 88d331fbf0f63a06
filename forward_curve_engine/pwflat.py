"""
Piecewise flat forward curve evaluation.

    f(u) = rates[i]        if times[i-1] < u <= times[i]   (times[-1] = 0)
         = extrapolation   if u > times[n-1]
         = NaN             if u < 0

    |                                     extrapolation
    |         rates[1]          rates[n-1] (--------
    | rates[0] (----- ...       (------]
    [--------]      ... --------]
    |
    0-----times[0]--- ... ---times[n-2]---times[n-1]

All functions take the raw triple (times, rates, extrapolation) and assume
`times` is strictly increasing. That precondition is not checked here; use
:class:`~forward_curve_engine.curves.PiecewiseFlatCurve` for a validated curve.
Out-of-domain queries return NaN rather than raising.
"""
from __future__ import annotations

from typing import Sequence

import numpy as np

from .utils import lower_bound


def value(u: float, times: Sequence[float], rates: Sequence[float], extrapolation: float = np.nan) -> float:
    """Forward rate at time u: rates[i] for times[i-1] < u <= times[i], extrapolation past the last knot."""
    if not u >= 0:
        return np.nan

    n = len(times)
    if n == 0:
        return extrapolation

    i = lower_bound(times, u)
    return extrapolation if i == n else rates[i]


def integral(u: float, times: Sequence[float], rates: Sequence[float], extrapolation: float = np.nan) -> float:
    """
    Integral of the forward curve from 0 to u.

    Knots are accumulated left to right so that, e.g., integral(1.5) on
    times [1, 2, 3] / rates [.1, .2, .3] is exactly .1 + .2 * .5.
    """
    if not u >= 0:
        return np.nan

    n = len(times)
    total = 0.0
    t_prev = 0

    i = 0
    while i < n and times[i] <= u:
        total += rates[i] * (times[i] - t_prev)
        t_prev = times[i]
        i += 1

    if i < n:
        total += rates[i] * (u - t_prev)
    elif n == 0 or u > times[n - 1]:
        total += extrapolation * (u - t_prev)

    return total


def discount(u: float, times: Sequence[float], rates: Sequence[float], extrapolation: float = np.nan) -> float:
    """D(u) = exp(-integral(u))."""
    return np.exp(-integral(u, times, rates, extrapolation))


def spot(u: float, times: Sequence[float], rates: Sequence[float], extrapolation: float = np.nan) -> float:
    """
    Continuously compounded spot rate r(u) = integral(u) / u.

    Returns rates[0] for u <= times[0] (this includes u = 0, where the ratio
    is 0/0). An empty curve has no first rate and gives NaN.
    """
    if len(times) == 0:
        return np.nan
    if u <= times[0]:
        return rates[0]
    # only reachable at u = 0 when times[0] < 0, which gives inf/nan instead of raising
    with np.errstate(divide="ignore", invalid="ignore"):
        return np.float64(integral(u, times, rates, extrapolation)) / u
