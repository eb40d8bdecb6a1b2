"""Initial density profiles for planar vapor-liquid interfaces."""

from __future__ import annotations

import math

import numpy as np


def _as_matrix(values, name: str) -> np.ndarray:
    matrix = np.asarray(values, dtype=float)
    if matrix.ndim != 2:
        raise ValueError(f"`{name}` must be two-dimensional, got shape {matrix.shape}")
    return matrix


def _as_vector(values, name: str) -> np.ndarray:
    vector = np.atleast_1d(np.asarray(values, dtype=float))
    if vector.ndim != 1:
        raise ValueError(f"`{name}` must be one-dimensional, got shape {vector.shape}")
    return vector


def interp(x_old, y_old, x_new, y_left, y_right, reverse=False) -> np.ndarray:
    """Interpolate profiles given per segment on ``x_old`` onto ``x_new``.

    ``y_old`` has shape (segments, len(x_old)). Inside the range of ``x_old``
    the interpolation is linear. Outside, the profiles decay geometrically
    towards ``y_left`` and ``y_right``, continuing the ratio of the two
    outermost points. With ``reverse`` the old profile is mirrored at zero
    first. ``x_new`` is walked in order with a cursor that never moves back.
    """
    x_old = _as_vector(x_old, "x_old")
    y_old = _as_matrix(y_old, "y_old")
    x_new = _as_vector(x_new, "x_new")
    y_left = _as_vector(y_left, "y_left")[:, np.newaxis]
    y_right = _as_vector(y_right, "y_right")[:, np.newaxis]

    n = len(x_old)
    if n < 2:
        raise ValueError("at least two points are required for interpolation")
    if y_old.shape[1] != n:
        raise ValueError(
            f"`y_old` has {y_old.shape[1]} points, `x_old` has {n}"
        )

    if reverse:
        x_rev = -x_old[::-1]
        y_rev = y_old[:, ::-1]
    else:
        x_rev = x_old
        y_rev = y_old

    k = np.maximum.accumulate(np.searchsorted(x_rev, x_new, side="left"))

    with np.errstate(divide="ignore", invalid="ignore", over="ignore"):
        left_exponent = (x_new - x_rev[0]) / (x_rev[1] - x_rev[0])
        left_ratio = (y_rev[:, [1]] - y_left) / (y_rev[:, [0]] - y_left)
        left = y_left + (y_rev[:, [0]] - y_left) * left_ratio**left_exponent

        right_exponent = (x_new - x_rev[n - 2]) / (x_rev[n - 1] - x_rev[n - 2])
        right_ratio = (y_rev[:, [n - 1]] - y_right) / (y_rev[:, [n - 2]] - y_right)
        right = y_right + (y_rev[:, [n - 2]] - y_right) * right_ratio**right_exponent

        inner = np.clip(k, 1, n - 1)
        fraction = (x_new - x_rev[inner - 1]) / (x_rev[inner] - x_rev[inner - 1])
        middle = y_rev[:, inner - 1] + fraction * (y_rev[:, inner] - y_rev[:, inner - 1])

    return np.where(k == 0, left, np.where(k == n, right, middle))


def interp_symmetric(z_pdgt, reduced_density, z, radius) -> np.ndarray:
    """Map a single-interface profile onto a domain with two mirrored interfaces.

    ``reduced_density`` is the interface profile on ``z_pdgt`` in reduced form,
    ``(rho - rho_vapor) / (rho_liquid - rho_vapor)``, one row per segment. The
    result is in the same reduced form on the grid ``z``; ``radius`` is half the
    domain width. A negative radius inverts the arrangement of the phases.
    """
    reduced = _as_matrix(reduced_density, "reduced_density") - 0.5
    z = _as_vector(z, "z")
    radius = float(radius)
    segments = reduced.shape[0]
    half = np.full(segments, 0.5)

    result = interp(z_pdgt, reduced, z - radius, half, -half, False) + interp(
        z_pdgt, reduced, z + radius, -half, half, True
    )
    if radius < 0.0:
        result += 1.0
    return result


def tanh_profile(z, rho_vapor, rho_liquid, l_grid, reduced_temperature) -> np.ndarray:
    """Hyperbolic tangent density profile between a liquid and a vapor phase.

    ``rho_vapor`` and ``rho_liquid`` are the bulk densities of every segment;
    the interface sits at half the domain width ``l_grid``, and its width is
    estimated from the temperature reduced by the critical temperature.
    """
    z = _as_vector(z, "z")
    rho_v = _as_vector(rho_vapor, "rho_vapor")[:, np.newaxis]
    rho_l = _as_vector(rho_liquid, "rho_liquid")[:, np.newaxis]
    if rho_v.shape != rho_l.shape:
        raise ValueError("`rho_vapor` and `rho_liquid` must have the same length")

    z0 = 0.5 * float(l_grid)
    sign = -math.copysign(1.0, z0)
    z0 = abs(z0)
    width = 2.4728 - 2.3625 * float(reduced_temperature)
    return 0.5 * (rho_l - rho_v) * np.tanh(sign * (z - z0) / 3.0 * width) + 0.5 * (
        rho_l + rho_v
    )


def scale_density(init, density) -> np.ndarray:
    """Rescale the profile ``init`` to the bulk densities at the ends of ``density``.

    Both arrays have shape (segments, grid points). Every segment of ``init``
    is mapped linearly so that its first and last values become those of
    ``density``.
    """
    init = _as_matrix(init, "init")
    density = _as_matrix(density, "density")
    if init.shape != density.shape:
        raise ValueError(
            f"`init` has shape {init.shape}, the profile has shape {density.shape}"
        )
    drho_init = (init[:, 0] - init[:, -1])[:, np.newaxis]
    rho_init_0 = init[:, [-1]]
    drho = (density[:, 0] - density[:, -1])[:, np.newaxis]
    rho_0 = density[:, [-1]]
    return (init - rho_init_0) / drho_init * drho + rho_0