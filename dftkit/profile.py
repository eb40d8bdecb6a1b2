"""Chemical potential specifications and residuals of the Euler-Lagrange equations."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field

import numpy as np

MAX_POTENTIAL = 50.0
"""External potentials at or above this value (in units of kT) freeze the density."""

CUTOFF_RADIUS = 14.0
"""Default cut-off radius for solid-fluid interactions in units of the reference length."""

_EPSILON = float(np.finfo(float).eps)


class NotConvergedError(RuntimeError):
    """Raised when a density profile does not converge within the allowed iterations."""

    def __init__(self, what: str = "DFT") -> None:
        super().__init__(f"`{what}` did not converge within the maximum number of iterations.")
        self.what = what


def _as_vector(values, name: str) -> np.ndarray:
    vector = np.asarray(values, dtype=float)
    if vector.ndim != 1:
        raise ValueError(f"`{name}` must be one-dimensional, got shape {vector.shape}")
    return vector


def _check_lengths(**vectors: np.ndarray) -> int:
    lengths = {name: len(vector) for name, vector in vectors.items()}
    if len(set(lengths.values())) > 1:
        details = ", ".join(f"{name}: {n}" for name, n in lengths.items())
        raise ValueError(f"inconsistent number of segments ({details})")
    return next(iter(lengths.values()))


class DFTSpecification(ABC):
    """Rule that determines the reduced segment chemical potentials during iteration.

    All quantities are per segment: ``m`` are the segment numbers,
    ``chemical_potential`` the current reduced chemical potentials (mu/kT) and
    ``z`` the integrals of ``exp(-dF/drho / m) * I`` over the domain.
    """

    @abstractmethod
    def calculate_chemical_potential(self, m, chemical_potential, z) -> np.ndarray:
        """Return the reduced chemical potentials required by this specification."""


@dataclass(frozen=True)
class ChemicalPotentialSpecification(DFTSpecification):
    """The chemical potential is fixed; the iterated value is kept as it is."""

    def calculate_chemical_potential(self, m, chemical_potential, z) -> np.ndarray:
        mu = _as_vector(chemical_potential, "chemical_potential")
        _check_lengths(m=_as_vector(m, "m"), chemical_potential=mu, z=_as_vector(z, "z"))
        return mu.copy()


@dataclass(frozen=True)
class MolesSpecification(DFTSpecification):
    """The number of particles of every segment is fixed."""

    moles: np.ndarray = field()

    def __post_init__(self) -> None:
        object.__setattr__(self, "moles", _as_vector(self.moles, "moles").copy())

    def calculate_chemical_potential(self, m, chemical_potential, z) -> np.ndarray:
        m = _as_vector(m, "m")
        z = _as_vector(z, "z")
        _check_lengths(
            m=m,
            chemical_potential=_as_vector(chemical_potential, "chemical_potential"),
            z=z,
            moles=self.moles,
        )
        return np.log(self.moles / z) * m


@dataclass(frozen=True)
class TotalMolesSpecification(DFTSpecification):
    """The total number of particles and the chemical potential differences are fixed."""

    total_moles: float
    chemical_potential: np.ndarray

    def __post_init__(self) -> None:
        object.__setattr__(self, "total_moles", float(self.total_moles))
        object.__setattr__(
            self,
            "chemical_potential",
            _as_vector(self.chemical_potential, "chemical_potential").copy(),
        )

    def calculate_chemical_potential(self, m, chemical_potential, z) -> np.ndarray:
        m = _as_vector(m, "m")
        z = _as_vector(z, "z")
        _check_lengths(
            m=m,
            chemical_potential=_as_vector(chemical_potential, "chemical_potential"),
            z=z,
            specified=self.chemical_potential,
        )
        exp_mu = np.exp(self.chemical_potential / m)
        return np.log(exp_mu * self.total_moles / np.sum(z * exp_mu)) * m


def _per_segment(vector: np.ndarray, ndim: int) -> np.ndarray:
    return vector.reshape((-1,) + (1,) * (ndim - 1))


def euler_lagrange_residual(
    density, dfdrho, external_potential, chemical_potential, m, isaft, log=False
) -> np.ndarray:
    """Residual of the Euler-Lagrange equation for every segment and grid point.

    ``dfdrho`` is the intrinsic functional derivative; the external potential is
    added to it. ``isaft`` holds the chain integrals evaluated for the total
    derivative. With ``log`` the residual is taken on the logarithm of the
    density. Where the external potential reaches ``MAX_POTENTIAL`` the residual
    is zero.
    """
    density = np.asarray(density, dtype=float)
    dfdrho = np.asarray(dfdrho, dtype=float)
    external_potential = np.asarray(external_potential, dtype=float)
    isaft = np.asarray(isaft, dtype=float)
    mu = _as_vector(chemical_potential, "chemical_potential")
    m = _as_vector(m, "m")

    for name, array in (
        ("dfdrho", dfdrho),
        ("external_potential", external_potential),
        ("isaft", isaft),
    ):
        if array.shape != density.shape:
            raise ValueError(
                f"`{name}` has shape {array.shape}, expected {density.shape}"
            )
    if density.ndim < 1:
        raise ValueError("`density` needs a segment axis")
    _check_lengths(density=density, chemical_potential=mu, m=m)

    total = dfdrho + external_potential
    exponent = (_per_segment(mu, density.ndim) - total) / _per_segment(m, density.ndim)
    with np.errstate(divide="ignore", invalid="ignore", over="ignore"):
        if log:
            residual = np.log(density) - exponent - np.log(isaft)
        else:
            residual = density - np.exp(exponent) * isaft

    residual[external_potential + _EPSILON >= MAX_POTENTIAL] = 0.0
    return residual


def chemical_potential_residual(chemical_potential, mu_spec, log=False) -> np.ndarray:
    """Residual between the iterated and the specified reduced chemical potentials."""
    mu = _as_vector(chemical_potential, "chemical_potential")
    spec = _as_vector(mu_spec, "mu_spec")
    _check_lengths(chemical_potential=mu, mu_spec=spec)
    if log:
        return mu - spec
    return np.exp(mu) - np.exp(spec)