class CurveInvariantError(ValueError):
    """Raised when a curve would violate its structural invariants.

    Raised by :class:`~forward_curve_engine.curves.PiecewiseFlatCurve` on
    construction or :meth:`~forward_curve_engine.curves.PiecewiseFlatCurve.append`,
    and by :class:`~forward_curve_engine.curves.CurveView`, when:

    - knot times and knot rates have different lengths
    - knot times are not strictly increasing
    - a knot time is not finite or is negative

    Notes
    -----
    This signals a programming error at the call site. Out-of-domain queries
    (negative times, times past the last knot with no extrapolation rate) are
    not errors and evaluate to NaN instead.
    """
