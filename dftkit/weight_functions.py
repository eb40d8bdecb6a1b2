"""Weight functions of weighted densities and their Fourier transforms."""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum

import numpy as np

_FOUR_THIRDS_PI = 4.0 * math.pi / 3.0
_J2_SERIES_LIMIT = 0.1


def _to_output(values: np.ndarray):
    return float(values) if values.ndim == 0 else values


def sph_j0(x):
    """Spherical Bessel function of the first kind of order 0, ``sin(x) / x``."""
    x = np.asarray(x, dtype=float)
    return _to_output(np.sinc(x / math.pi))


def sph_j2(x):
    """Spherical Bessel function of the first kind of order 2.

    A power series is used close to the origin, where the closed form
    suffers from cancellation.
    """
    x = np.asarray(x, dtype=float)
    small = np.abs(x) < _J2_SERIES_LIMIT
    safe = np.where(small, 1.0, x)
    x2 = x * x
    series = x2 * (1.0 / 15.0 - x2 * (1.0 / 210.0 - x2 * (1.0 / 7560.0 - x2 / 498960.0)))
    closed = (3.0 / safe**2 - 1.0) * np.sin(safe) / safe - 3.0 * np.cos(safe) / safe**2
    return _to_output(np.where(small, series, closed))


class WeightFunctionShape(Enum):
    """Possible shapes of a weight function."""

    THETA = "Theta"
    """Heaviside step function."""
    DELTA = "Delta"
    """Dirac delta function."""
    KR0 = "KR0"
    """Combination of first and second derivative of the Dirac delta function."""
    KR1 = "KR1"
    """First derivative of the Dirac delta function."""
    DELTA_VEC = "DeltaVec"
    """Dirac delta function times the outward normal vector."""

    @property
    def is_vector(self) -> bool:
        return self is WeightFunctionShape.DELTA_VEC


def _segment_axis(values: np.ndarray, ndim: int) -> np.ndarray:
    return values.reshape((-1,) + (1,) * ndim)


@dataclass
class WeightFunction:
    """A weight function corresponding to a single weighted density.

    ``prefactor`` and ``kernel_radius`` hold one entry per segment.
    """

    prefactor: np.ndarray
    kernel_radius: np.ndarray
    shape: WeightFunctionShape

    def __post_init__(self) -> None:
        self.prefactor = np.atleast_1d(np.asarray(self.prefactor, dtype=float)).copy()
        self.kernel_radius = np.atleast_1d(
            np.asarray(self.kernel_radius, dtype=float)
        ).copy()
        self.shape = WeightFunctionShape(self.shape)

    @classmethod
    def new_unscaled(cls, kernel_radius, shape) -> WeightFunction:
        """Create a weight function with a prefactor of one."""
        radius = np.atleast_1d(np.asarray(kernel_radius, dtype=float))
        return cls(np.ones_like(radius), radius, shape)

    @classmethod
    def new_scaled(cls, kernel_radius, shape) -> WeightFunction:
        """Create a weight function whose weight constants are one."""
        unscaled = cls.new_unscaled(kernel_radius, shape)
        constants = unscaled.scalar_weight_constants(0.0)
        return cls(1.0 / constants, unscaled.kernel_radius, unscaled.shape)

    def fft_scalar_weight_functions(self, k_abs, lanczos=None) -> np.ndarray:
        """Fourier transform of a scalar weight function.

        ``k_abs`` is the absolute value of the Fourier variable; the result has
        a leading segment axis followed by the shape of ``k_abs``.
        """
        if self.shape.is_vector:
            raise ValueError(f"{self.shape.value} is not a scalar weight function")
        k_abs = np.asarray(k_abs, dtype=float)
        radius = _segment_axis(self.kernel_radius, k_abs.ndim)
        prefactor = _segment_axis(self.prefactor, k_abs.ndim)
        rik = radius * k_abs

        match self.shape:
            case WeightFunctionShape.THETA:
                w = (sph_j0(rik) + sph_j2(rik)) * _FOUR_THIRDS_PI * radius**3 * prefactor
            case WeightFunctionShape.DELTA:
                w = sph_j0(rik) * 4.0 * math.pi * radius**2 * prefactor
            case WeightFunctionShape.KR1:
                w = (sph_j0(rik) + np.cos(rik)) * 0.5 * radius * prefactor
            case _:
                w = (rik * np.sin(rik) * 0.5 + np.cos(rik)) * prefactor

        w = np.asarray(w, dtype=float)
        if lanczos is not None:
            w = w * np.asarray(lanczos, dtype=float)
        return w

    def fft_vector_weight_functions(self, k_abs, k, lanczos=None) -> np.ndarray:
        """Fourier transform (imaginary part) of a vector weight function.

        ``k`` holds one component of the Fourier variable per dimension; the
        result has a dimension axis, a segment axis and the shape of ``k_abs``.
        """
        if not self.shape.is_vector:
            raise ValueError(f"{self.shape.value} is not a vector weight function")
        k_abs = np.asarray(k_abs, dtype=float)
        k = np.asarray(k, dtype=float)
        if k.shape[1:] != k_abs.shape:
            raise ValueError(
                f"`k` has shape {k.shape}, expected (dimensions, *{k_abs.shape})"
            )
        radius = _segment_axis(self.kernel_radius, k_abs.ndim)
        prefactor = _segment_axis(self.prefactor, k_abs.ndim)
        rik = radius * k_abs
        scalar = (sph_j0(rik) + sph_j2(rik)) * (-(radius**3) * _FOUR_THIRDS_PI * prefactor)
        w = k[:, np.newaxis, ...] * np.asarray(scalar, dtype=float)[np.newaxis, ...]
        if lanczos is not None:
            w = w * np.asarray(lanczos, dtype=float)
        return w

    def scalar_weight_constants(self, k) -> np.ndarray:
        """Scalar weight constants per segment for a bulk convolution."""
        return self.fft_scalar_weight_functions(np.asarray(float(k)))

    def vector_weight_constants(self, k) -> np.ndarray:
        """Vector weight constants per segment for a bulk convolution."""
        k = float(k)
        return self.fft_vector_weight_functions(np.asarray(k), np.array([k]))[0]


class WeightFunctionInfo:
    """Weight functions of one functional contribution, sorted by kind.

    Weight functions are either component-wise (one weighted density per
    segment) or FMT-like (one weighted density summed over all segments),
    and either scalar or vector valued.
    """

    def __init__(self, component_index, local_density: bool) -> None:
        self.component_index = np.atleast_1d(np.asarray(component_index, dtype=int)).copy()
        self.local_density = bool(local_density)
        self.scalar_component_weighted_densities: list[WeightFunction] = []
        self.vector_component_weighted_densities: list[WeightFunction] = []
        self.scalar_fmt_weighted_densities: list[WeightFunction] = []
        self.vector_fmt_weighted_densities: list[WeightFunction] = []

    @property
    def segments(self) -> int:
        return len(self.component_index)

    def add(self, weight_function: WeightFunction, fmt: bool) -> WeightFunctionInfo:
        """Add a weight function to the matching group and return ``self``."""
        segments = self.segments
        if len(weight_function.kernel_radius) != segments:
            raise ValueError(
                f"Number of segments is fixed to {segments}; `kernel_radius` has "
                f"{len(weight_function.kernel_radius)} entries."
            )
        if len(weight_function.prefactor) != segments:
            raise ValueError(
                f"Number of segments is fixed to {segments}; `prefactor` has "
                f"{len(weight_function.prefactor)} entries."
            )
        vector = weight_function.shape.is_vector
        if fmt:
            group = (
                self.vector_fmt_weighted_densities
                if vector
                else self.scalar_fmt_weighted_densities
            )
        else:
            group = (
                self.vector_component_weighted_densities
                if vector
                else self.scalar_component_weighted_densities
            )
        group.append(weight_function)
        return self

    def extend(self, weight_functions, fmt: bool) -> WeightFunctionInfo:
        """Add several weight functions and return ``self``."""
        for weight_function in weight_functions:
            self.add(weight_function, fmt)
        return self

    def groups(self) -> tuple[list[WeightFunction], ...]:
        """The four groups: scalar component, vector component, scalar FMT, vector FMT."""
        return (
            self.scalar_component_weighted_densities,
            self.vector_component_weighted_densities,
            self.scalar_fmt_weighted_densities,
            self.vector_fmt_weighted_densities,
        )

    def n_weighted_densities(self, dimensions: int) -> int:
        """Total number of weighted densities for the given number of dimensions."""
        segments = self.segments
        return (
            (segments if self.local_density else 0)
            + len(self.scalar_component_weighted_densities) * segments
            + len(self.vector_component_weighted_densities) * segments * dimensions
            + len(self.scalar_fmt_weighted_densities)
            + len(self.vector_fmt_weighted_densities) * dimensions
        )

    def weight_constants(self, k, dimensions: int) -> np.ndarray:
        """Matrix of weight constants (weighted densities x segments).

        Vector weight functions contribute only for one dimension; otherwise
        their rows remain zero at the end of the matrix.
        """
        segments = self.segments
        constants = np.zeros((self.n_weighted_densities(dimensions), segments))
        diagonal = np.arange(segments)
        row = 0

        def fill_block(values) -> None:
            nonlocal row
            constants[row + diagonal, diagonal] = values
            row += segments

        def fill_row(values) -> None:
            nonlocal row
            constants[row, :] = values
            row += 1

        if self.local_density:
            fill_block(1.0)
        for w in self.scalar_component_weighted_densities:
            fill_block(w.scalar_weight_constants(k))
        if dimensions == 1:
            for w in self.vector_component_weighted_densities:
                fill_block(w.vector_weight_constants(k))
        for w in self.scalar_fmt_weighted_densities:
            fill_row(w.scalar_weight_constants(k))
        if dimensions == 1:
            for w in self.vector_fmt_weighted_densities:
                fill_row(w.vector_weight_constants(k))
        return constants