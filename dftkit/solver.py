"""Iterative solvers for the Euler-Lagrange equations of a DFT profile."""

from __future__ import annotations

import math
from collections import deque
from dataclasses import dataclass, replace
from decimal import Decimal
from enum import Enum
from typing import Callable, NamedTuple

import numpy as np

Residual = Callable[[np.ndarray, bool], np.ndarray]


class IterationFailedError(RuntimeError):
    """Raised when an iteration produces a residual that is not a number."""


def _display_float(value: float) -> str:
    """Format a float as its shortest exact decimal without an exponent."""
    value = float(value)
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "inf" if value > 0 else "-inf"
    text = format(Decimal(repr(value)), "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def _lower_exp(value: float) -> str:
    """Format a float in shortest scientific notation, e.g. ``1e-11``."""
    value = float(value)
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "inf" if value > 0 else "-inf"
    if value == 0.0:
        return "0e0"
    sign, digits, exponent = Decimal(repr(value)).normalize().as_tuple()
    power = exponent + len(digits) - 1
    mantissa = str(digits[0])
    if len(digits) > 1:
        mantissa += "." + "".join(str(d) for d in digits[1:])
    return f"{'-' if sign else ''}{mantissa}e{power}"


def _exp6(value: float) -> str:
    """Format a float with six decimals in scientific notation, e.g. ``1.5e-3``."""
    value = float(value)
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "inf" if value > 0 else "-inf"
    mantissa, exponent = f"{value:.6e}".split("e")
    return f"{mantissa}e{int(exponent)}"


def _rms(vector: np.ndarray) -> float:
    return float(np.linalg.norm(vector) / math.sqrt(vector.size))


class AlgorithmKind(Enum):
    """The iteration scheme used by a solver stage."""

    PICARD_ITERATION = "Picard Iteration"
    ANDERSON_MIXING = "Anderson Mixing"


@dataclass(frozen=True)
class DFTAlgorithm:
    """An iteration scheme together with its characteristic parameter.

    For Picard iterations the parameter is ``max_rel``, for Anderson
    mixing it is ``mmax``, the number of stored previous solutions.
    """

    kind: AlgorithmKind
    parameter: float | int

    @classmethod
    def picard(cls, max_rel: float) -> DFTAlgorithm:
        return cls(AlgorithmKind.PICARD_ITERATION, float(max_rel))

    @classmethod
    def anderson(cls, mmax: int) -> DFTAlgorithm:
        return cls(AlgorithmKind.ANDERSON_MIXING, int(mmax))

    def __str__(self) -> str:
        if self.kind is AlgorithmKind.PICARD_ITERATION:
            return f"Picard Iteration (max_rel={_display_float(self.parameter)})"
        return f"Anderson Mixing (mmax={self.parameter})"


class SolverResult(NamedTuple):
    """Outcome of a solver run."""

    x: np.ndarray
    converged: bool
    iterations: int


@dataclass(frozen=True)
class SolverParameter:
    """Settings of a single solver stage."""

    solver: DFTAlgorithm
    log: bool
    max_iter: int
    tol: float
    beta: float

    def solve(self, x: np.ndarray, residual: Residual, output: bool) -> SolverResult:
        """Run this stage starting from ``x``."""
        x = np.array(x, dtype=float)
        if self.solver.kind is AlgorithmKind.PICARD_ITERATION:
            return self._solve_picard(float(self.solver.parameter), x, residual, output)
        return self._solve_anderson(int(self.solver.parameter), x, residual, output)

    def _solve_picard(
        self, max_rel: float, x: np.ndarray, residual: Residual, output: bool
    ) -> SolverResult:
        if output:
            print("-" * 43)
        log_label = "log" if self.log else ""
        for k in range(1, self.max_iter + 1):
            resm = np.asarray(residual(x, self.log), dtype=float)

            with np.errstate(divide="ignore", invalid="ignore"):
                ratio = max_rel * np.abs(x / resm)
            limited = ratio < self.beta
            beta = np.where(limited, ratio, self.beta)
            beta_min = float(ratio[limited].min()) if limited.any() else None

            if self.log:
                x = x * np.exp(-resm * beta)
            else:
                x = x - resm * beta

            res = _rms(resm)
            if output:
                shown_beta = self.beta if beta_min is None else beta_min
                print(
                    f"Picard iteration {log_label:<3} | {k:>4} | {_exp6(res)} | "
                    f"{_display_float(shown_beta)}"
                )
            if math.isnan(res):
                raise IterationFailedError("Picard Iteration")
            if res < self.tol and beta_min is None:
                return SolverResult(x, True, k)
        return SolverResult(x, False, self.max_iter)

    def _solve_anderson(
        self, mmax: int, x: np.ndarray, residual: Residual, output: bool
    ) -> SolverResult:
        if output:
            print("-" * 43)
        log_label = "log" if self.log else ""
        resm: deque[np.ndarray] = deque()
        xm: deque[np.ndarray] = deque()

        for k in range(1, self.max_iter + 1):
            if resm and len(resm) == mmax:
                resm.popleft()
                xm.popleft()
            m = len(resm) + 1

            resm.append(np.asarray(residual(x, self.log), dtype=float))
            xm.append(np.log(x) if self.log else x.copy())

            stacked = np.stack(list(resm))
            r = np.ones((m + 1, m + 1))
            r[:m, :m] = stacked @ stacked.T
            r[m, m] = 0.0
            rhs = np.zeros(m + 1)
            rhs[m] = 1.0
            try:
                alpha = np.linalg.solve(r, rhs)
            except np.linalg.LinAlgError as error:
                raise IterationFailedError("Anderson Mixing") from error

            x = sum(
                a * (xi - self.beta * ri) for a, xi, ri in zip(alpha[:m], xm, resm)
            )
            x = np.exp(x) if self.log else np.abs(x)

            res = _rms(resm[-1])
            if output:
                print(f"Anderson mixing {log_label:<3}  | {k:>4} | {_exp6(res)} ")
            if math.isnan(res):
                raise IterationFailedError("Anderson Mixing")
            if res < self.tol:
                return SolverResult(x, True, k)
        return SolverResult(x, False, self.max_iter)

    def __str__(self) -> str:
        return (
            f"{self.solver} max_iter: {self.max_iter}, tol: {_display_float(self.tol)}, "
            f"beta: {_display_float(self.beta)}"
        )


DEFAULT_PARAMS_PICARD = SolverParameter(
    solver=DFTAlgorithm.picard(1.0), log=False, max_iter=500, tol=1e-11, beta=0.15
)
DEFAULT_PARAMS_ANDERSON_LOG = SolverParameter(
    solver=DFTAlgorithm.anderson(100), log=True, max_iter=50, tol=1e-5, beta=0.15
)
DEFAULT_PARAMS_ANDERSON = SolverParameter(
    solver=DFTAlgorithm.anderson(100), log=False, max_iter=150, tol=1e-11, beta=0.15
)


class DFTSolver:
    """A sequence of solver stages applied one after another.

    Builder methods return a new solver and leave the original unchanged.
    """

    def __init__(self, output: bool = False) -> None:
        self.parameters: tuple[SolverParameter, ...] = ()
        self.output = bool(output)

    @classmethod
    def default(cls) -> DFTSolver:
        """The default solver: logarithmic Anderson mixing, then Anderson mixing."""
        solver = cls()
        solver.parameters = (DEFAULT_PARAMS_ANDERSON_LOG, DEFAULT_PARAMS_ANDERSON)
        return solver

    def _with_stage(
        self,
        stage: SolverParameter,
        log: bool | None,
        max_iter: int | None,
        tol: float | None,
        beta: float | None,
    ) -> DFTSolver:
        if log:
            stage = replace(stage, log=True)
        if max_iter is not None:
            stage = replace(stage, max_iter=int(max_iter))
        if tol is not None:
            stage = replace(stage, tol=float(tol))
        if beta is not None:
            stage = replace(stage, beta=float(beta))
        solver = DFTSolver(self.output)
        solver.parameters = (*self.parameters, stage)
        return solver

    def picard_iteration(
        self,
        max_rel: float | None = None,
        log: bool | None = None,
        max_iter: int | None = None,
        tol: float | None = None,
        beta: float | None = None,
    ) -> DFTSolver:
        """Return a solver with an additional Picard iteration stage."""
        stage = DEFAULT_PARAMS_PICARD
        if max_rel is not None:
            stage = replace(stage, solver=DFTAlgorithm.picard(max_rel))
        return self._with_stage(stage, log, max_iter, tol, beta)

    def anderson_mixing(
        self,
        mmax: int | None = None,
        log: bool | None = None,
        max_iter: int | None = None,
        tol: float | None = None,
        beta: float | None = None,
    ) -> DFTSolver:
        """Return a solver with an additional Anderson mixing stage."""
        stage = DEFAULT_PARAMS_ANDERSON
        if mmax is not None:
            stage = replace(stage, solver=DFTAlgorithm.anderson(mmax))
        return self._with_stage(stage, log, max_iter, tol, beta)

    def solve(self, x: np.ndarray, residual: Residual) -> SolverResult:
        """Run all stages in order.

        ``residual(x, log)`` returns the residual vector for ``x``. The
        convergence flag is that of the last stage; iterations are summed.
        """
        if self.output:
            print("solver               | iter | residual ")
        x = np.array(x, dtype=float)
        converged = False
        iterations = 0
        for stage in self.parameters:
            x, converged, count = stage.solve(x, residual, self.output)
            iterations += count
        return SolverResult(x, converged, iterations)

    def _repr_markdown_(self) -> str:
        lines = ["|solver|log|max_iter|tol|beta|mmax|max_rel|\n|-|:-:|-:|-:|-:|-:|-:|"]
        for stage in self.parameters:
            if stage.solver.kind is AlgorithmKind.PICARD_ITERATION:
                mmax, max_rel = "", _display_float(stage.solver.parameter)
            else:
                mmax, max_rel = str(stage.solver.parameter), ""
            lines.append(
                f"\n|{stage.solver.kind.value}|{'x' if stage.log else ''}|"
                f"{stage.max_iter}|{_lower_exp(stage.tol)}|"
                f"{_display_float(stage.beta)}|{mmax}|{max_rel}|"
            )
        return "".join(lines)

    def __str__(self) -> str:
        return "".join(f"{stage}\n" for stage in self.parameters)

    __repr__ = __str__