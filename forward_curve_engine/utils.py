from __future__ import annotations

import bisect
from typing import Any, Iterable, Sequence

import numpy as np


def monotonic(values: Iterable[Any]) -> bool:
    """
    True if every consecutive pair is strictly increasing (v[i] < v[i+1]).

    Vacuously true for zero or one element. Works on any iterable of totally
    ordered scalars, including reversed iterators and numpy arrays.
    A NaN anywhere past the first element breaks strict increase.
    """
    it = iter(values)
    try:
        prev = next(it)
    except StopIteration:
        return True

    for v in it:
        if not prev < v:
            return False
        prev = v
    return True


def lower_bound(values: Sequence[Any], x: Any) -> int:
    """
    Smallest index i with values[i] >= x in an ascending sequence, len(values) if none.

    numpy arrays go through searchsorted; other sequences are bisected in
    place so a list is never copied.
    """
    if isinstance(values, np.ndarray):
        return int(np.searchsorted(values, x, side="left"))
    return bisect.bisect_left(values, x)
