from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class RiskConfig:
    bump_bp: float = 1.0

    def __post_init__(self) -> None:
        if not self.bump_bp > 0:
            raise ValueError("bump_bp must be > 0")


@dataclass(frozen=True)
class SpreadSolverConfig:
    lo: float = -0.5
    hi: float = 1.0
    xtol: float = 1e-14
    maxiter: int = 300

    def __post_init__(self) -> None:
        if self.lo >= self.hi:
            raise ValueError("lo must be < hi")
        if self.xtol <= 0:
            raise ValueError("xtol must be > 0")
        if self.maxiter <= 0:
            raise ValueError("maxiter must be > 0")
