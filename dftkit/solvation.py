"""External potentials of solutes in a three-dimensional fluid."""

from __future__ import annotations

import numpy as np

from dftkit.profile import CUTOFF_RADIUS, MAX_POTENTIAL


def lj_potential(distance2, sigma, epsilon, cutoff_radius2):
    """Lennard-Jones 12-6 potential evaluated from squared distances.

    The potential vanishes beyond the squared cut-off radius and is infinite
    at zero distance.
    """
    distance2 = np.asarray(distance2, dtype=float)
    sigma = np.asarray(sigma, dtype=float)
    epsilon = np.asarray(epsilon, dtype=float)
    with np.errstate(divide="ignore", invalid="ignore", over="ignore"):
        sigma_r = sigma**2 / distance2
        potential = 4.0 * epsilon * (sigma_r**6 - sigma_r**3)
    result = np.where(
        distance2 > cutoff_radius2,
        0.0,
        np.where(distance2 == 0.0, np.inf, potential),
    )
    return float(result) if result.ndim == 0 else result


def squared_distances(point, coordinates) -> np.ndarray:
    """Squared Euclidean distances from ``point`` to every site in ``coordinates``.

    ``coordinates`` has shape (3, sites).
    """
    point = np.asarray(point, dtype=float)
    coordinates = np.asarray(coordinates, dtype=float)
    if point.shape != (3,) or coordinates.ndim != 2 or coordinates.shape[0] != 3:
        raise ValueError("expected a point of length 3 and coordinates of shape (3, sites)")
    return np.sum((coordinates - point[:, np.newaxis]) ** 2, axis=0)


def center_coordinates(coordinates, system_size) -> np.ndarray:
    """Shift the sites so that their geometric center lies in the box center."""
    coordinates = np.asarray(coordinates, dtype=float)
    system_size = np.asarray(system_size, dtype=float)
    if coordinates.ndim != 2 or coordinates.shape[0] != 3 or system_size.shape != (3,):
        raise ValueError("expected coordinates of shape (3, sites) and a box of length 3")
    if coordinates.shape[1] == 0:
        raise ValueError("at least one interaction site is required")
    shift = system_size / 2.0 - coordinates.mean(axis=1)
    return coordinates + shift[:, np.newaxis]


def external_potential_3d(
    m,
    sigma_ff,
    epsilon_k_ff,
    grids,
    coordinates,
    sigma_ss,
    epsilon_ss,
    reduced_temperature,
    cutoff_radius=None,
    potential_cutoff=None,
) -> np.ndarray:
    """Reduced external potential of a solute acting on every fluid segment.

    The solute consists of Lennard-Jones sites at ``coordinates`` (shape
    (3, sites)). Solid-fluid parameters follow the Lorentz-Berthelot rules.
    The result has shape (segments, nx, ny, nz) and is limited to
    ``potential_cutoff``.
    """
    m = np.atleast_1d(np.asarray(m, dtype=float))
    sigma_ff = np.atleast_1d(np.asarray(sigma_ff, dtype=float))
    epsilon_k_ff = np.atleast_1d(np.asarray(epsilon_k_ff, dtype=float))
    sigma_ss = np.atleast_1d(np.asarray(sigma_ss, dtype=float))
    epsilon_ss = np.atleast_1d(np.asarray(epsilon_ss, dtype=float))
    coordinates = np.asarray(coordinates, dtype=float)

    if not (len(m) == len(sigma_ff) == len(epsilon_k_ff)):
        raise ValueError("`m`, `sigma_ff` and `epsilon_k_ff` must have the same length")
    if coordinates.ndim != 2 or coordinates.shape[0] != 3:
        raise ValueError("`coordinates` must have shape (3, sites)")
    if not (coordinates.shape[1] == len(sigma_ss) == len(epsilon_ss)):
        raise ValueError("every interaction site needs a `sigma_ss` and an `epsilon_ss`")
    x, y, z = (np.asarray(g, dtype=float) for g in grids)

    cutoff = CUTOFF_RADIUS if cutoff_radius is None else float(cutoff_radius)
    cutoff_radius2 = cutoff**2
    limit = MAX_POTENTIAL if potential_cutoff is None else float(potential_cutoff)

    distance2 = (
        (x[:, None, None, None] - coordinates[0]) ** 2
        + (y[None, :, None, None] - coordinates[1]) ** 2
        + (z[None, None, :, None] - coordinates[2]) ** 2
    )

    potential = np.stack(
        [
            m_i
            * np.sum(
                lj_potential(
                    distance2,
                    (sigma_ss + s_i) / 2.0,
                    np.sqrt(epsilon_ss * e_i),
                    cutoff_radius2,
                ),
                axis=-1,
            )
            / reduced_temperature
            for m_i, s_i, e_i in zip(m, sigma_ff, epsilon_k_ff)
        ]
    )
    return np.where(potential > limit, limit, potential)