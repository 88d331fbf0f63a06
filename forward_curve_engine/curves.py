from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Iterable, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from . import pwflat
from .exceptions import CurveInvariantError
from .utils import monotonic

logger = logging.getLogger(__name__)


def _readonly(values: Iterable[float]) -> np.ndarray:
    arr = np.asarray(values).view()
    arr.setflags(write=False)
    return arr


class ForwardCurve(ABC):
    """
    Capability set {size, times, rates} of a piecewise flat forward curve.

    Evaluation methods route through :mod:`forward_curve_engine.pwflat`, so a
    subclass only decides how knots are stored. The extrapolation rate is
    supplied per call and is never stored on the curve.
    """

    @property
    @abstractmethod
    def times(self) -> np.ndarray:
        ...

    @property
    @abstractmethod
    def rates(self) -> np.ndarray:
        ...

    @property
    def size(self) -> int:
        return len(self.times)

    def __len__(self) -> int:
        return self.size

    def value(self, u: float, extrapolation: float = np.nan) -> float:
        return pwflat.value(u, self.times, self.rates, extrapolation)

    def __call__(self, u: float, extrapolation: float = np.nan) -> float:
        return self.value(u, extrapolation)

    def integral(self, u: float, extrapolation: float = np.nan) -> float:
        return pwflat.integral(u, self.times, self.rates, extrapolation)

    def discount(self, u: float, extrapolation: float = np.nan) -> float:
        return pwflat.discount(u, self.times, self.rates, extrapolation)

    def spot(self, u: float, extrapolation: float = np.nan) -> float:
        return pwflat.spot(u, self.times, self.rates, extrapolation)

    def df(self, times: Iterable[float], extrapolation: float = np.nan) -> np.ndarray:
        t, f = self.times, self.rates
        return np.array([pwflat.discount(u, t, f, extrapolation) for u in times], dtype=float)

    def zero_rates(self, times: Iterable[float], extrapolation: float = np.nan) -> np.ndarray:
        t, f = self.times, self.rates
        return np.array([pwflat.spot(u, t, f, extrapolation) for u in times], dtype=float)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(times={self.times.tolist()}, rates={self.rates.tolist()})"


@dataclass(frozen=True, repr=False, eq=False)
class CurveView(ForwardCurve):
    """
    Read-only, non-owning view over caller supplied knot arrays.

    Ordering of `times` is a caller precondition and is not checked; only the
    lengths are. The caller must not mutate the arrays while the view is used.
    """
    knot_times: np.ndarray
    knot_rates: np.ndarray

    def __post_init__(self) -> None:
        t = _readonly(self.knot_times)
        f = _readonly(self.knot_rates)
        if t.shape != f.shape:
            raise CurveInvariantError(f"times and rates differ in length: {len(t)} != {len(f)}")
        object.__setattr__(self, "knot_times", t)
        object.__setattr__(self, "knot_rates", f)

    @property
    def times(self) -> np.ndarray:
        return self.knot_times

    @property
    def rates(self) -> np.ndarray:
        return self.knot_rates


class PiecewiseFlatCurve(ForwardCurve):
    """
    Owning, append-only piecewise flat forward curve.

    Knot times are kept non-negative and strictly increasing: bulk
    construction and :meth:`append` raise :class:`CurveInvariantError`
    otherwise. There is no removal or in-place update. Not synchronized;
    publish a :meth:`snapshot` to readers on other threads instead of
    appending under them.
    """

    def __init__(self, times: Optional[Sequence[float]] = None, rates: Optional[Sequence[float]] = None):
        times = [] if times is None else list(times)
        rates = [] if rates is None else list(rates)

        if len(times) != len(rates):
            raise CurveInvariantError(f"times and rates differ in length: {len(times)} != {len(rates)}")
        if not np.all(np.isfinite(np.asarray(times, dtype=float))):
            raise CurveInvariantError("Knot times must be finite.")
        if not monotonic(times):
            raise CurveInvariantError("Knot times must be strictly increasing.")
        if times and times[0] < 0:
            raise CurveInvariantError(f"Knot times must be non-negative, got {times[0]!r}.")

        self._times = times
        self._rates = rates
        self._views: Optional[Tuple[np.ndarray, np.ndarray]] = None

        logger.debug("Built curve with %d knots", len(times))

    def _arrays(self) -> Tuple[np.ndarray, np.ndarray]:
        # rebuilt after append; arrays already handed out are never touched
        if self._views is None:
            self._views = (_readonly(np.array(self._times)), _readonly(np.array(self._rates)))
        return self._views

    @property
    def times(self) -> np.ndarray:
        return self._arrays()[0]

    @property
    def rates(self) -> np.ndarray:
        return self._arrays()[1]

    @property
    def size(self) -> int:
        return len(self._times)

    def append(self, time: float, rate: float) -> "PiecewiseFlatCurve":
        if not np.isfinite(time):
            raise CurveInvariantError(f"Knot time must be finite, got {time!r}.")
        if time < 0:
            raise CurveInvariantError(f"Knot time must be non-negative, got {time!r}.")
        if self._times and not time > self._times[-1]:
            raise CurveInvariantError(
                f"Knot time {time!r} must exceed last knot time {self._times[-1]!r}."
            )

        self._times.append(time)
        self._rates.append(rate)
        self._views = None

        logger.debug("Appended knot (%s, %s); curve has %d knots", time, rate, len(self._times))
        return self

    def extend(self, knots: Iterable[Tuple[float, float]]) -> "PiecewiseFlatCurve":
        for time, rate in knots:
            self.append(time, rate)
        return self

    def snapshot(self) -> CurveView:
        """Immutable copy of the current knots."""
        t, f = self._arrays()
        return CurveView(t.copy(), f.copy())


def curve_qc_report(curve: ForwardCurve, extrapolation: float = np.nan) -> pd.DataFrame:
    times = np.asarray(curve.times)
    rates = np.asarray(curve.rates)

    integrals = np.array([pwflat.integral(u, times, rates, extrapolation) for u in times], dtype=float)
    dfs = np.exp(-integrals)
    spots = np.array([pwflat.spot(u, times, rates, extrapolation) for u in times], dtype=float)

    return pd.DataFrame(
        {
            "time": times,
            "rate": rates,
            "integral": integrals,
            "discount": dfs,
            "spot": spots,
            "time_monotone": np.r_[True, np.diff(times) > 0] if len(times) else np.array([], dtype=bool),
            "discount_positive": dfs > 0,
        }
    )


def shocked_curve_parallel(curve: ForwardCurve, shift_bp: float) -> PiecewiseFlatCurve:
    """Parallel shift of every knot forward rate by shift_bp."""
    return curve_from_shifted_rates(curve, parallel_shift_bp(shift_bp))


def curve_from_shifted_rates(curve: ForwardCurve, shift_func: Callable[[float], float]) -> PiecewiseFlatCurve:
    """Build a new curve by shifting each knot rate f(t) by shift_func(t) (decimal)."""
    times = np.asarray(curve.times)
    rates = np.asarray(curve.rates, dtype=float)

    shifts = np.array([shift_func(t) for t in times], dtype=float)
    return PiecewiseFlatCurve(times.copy(), rates + shifts)


def bumped_knot_curve(curve: ForwardCurve, k: int, bp: float) -> PiecewiseFlatCurve:
    """Shift only the forward rate of knot k, i.e. the segment (times[k-1], times[k]]."""
    n = curve.size
    if not (0 <= k < n):
        raise ValueError("k out of range")

    rates = np.array(curve.rates, dtype=float)
    rates[k] += bp / 10000.0
    return PiecewiseFlatCurve(np.asarray(curve.times).copy(), rates)


def parallel_shift_bp(bp: float):
    """Same shift of bp at every time, the extrapolated tail included."""
    s = bp / 10000.0
    return lambda tau: s


def steepener_shift_bp(bp: float, pivot: float = 2.0, long: float = 10.0):
    """Forward rates down bp up to pivot, up bp from long on, linear in between."""
    A = bp / 10000.0

    def f(tau: float) -> float:
        if tau <= pivot:
            return -A
        if tau >= long:
            return +A
        w = (tau - pivot) / (long - pivot)
        return (1 - w) * (-A) + w * (+A)

    return f


def flattener_shift_bp(bp: float, pivot: float = 2.0, long: float = 10.0):
    """Mirror of the steepener: forward rates up bp to pivot, down bp from long on."""
    A = bp / 10000.0

    def f(tau: float) -> float:
        if tau <= pivot:
            return +A
        if tau >= long:
            return -A
        w = (tau - pivot) / (long - pivot)
        return (1 - w) * (+A) + w * (-A)

    return f
