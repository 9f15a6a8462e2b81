#!/usr/bin/env python3
# RepAssess - tracking sample representativeness assessment
# Copyright (C) 2024 RepAssess Contributors
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE. See the
# GNU Affero General Public License for more details.
#
# You should have received a copy of the GNU Affero General Public License
# along with this program. If not, see <https://www.gnu.org/licenses/>.

"""
Utilization distribution (UD) estimation.

Fixed-bandwidth bivariate Gaussian kernel density per individual, evaluated
at the cell centres of one grid shared by all individuals:

    UD(x, y) = 1 / (2π h² n) · Σ exp(-((x - xi)² + (y - yi)²) / (2h²))

Densities are per m², so density × cell_size² is the probability mass of a
cell. The grid covers all fixes plus a buffer of a few bandwidths.
"""
import logging

import numpy as np
from scipy.stats import norm

try:
    from .. import config
    from ..locales.strings import ERRORS
except ImportError:
    import config
    from locales.strings import ERRORS

from .errors import ShapeMismatchError
from .structures import GridGeometry, UDSurface

logger = logging.getLogger(__name__)


def reference_bandwidth(x, y):
    """
    Reference bandwidth href = sqrt(0.5·(var(x) + var(y))) · n^(-1/6).

    Returns:
        float: bandwidth in metres (0.0 for fewer than 2 distinct fixes)
    """
    n = len(x)
    if n < 2:
        return 0.0
    sigma = np.sqrt(0.5 * (np.var(x, ddof=1) + np.var(y, ddof=1)))
    return float(sigma * n ** (-1.0 / 6.0))


def build_grid(x, y, bandwidth, resolution_m=None):
    """
    Grid covering all fixes plus a buffer.

    Args:
        x, y: all fixes (metres)
        bandwidth: kernel bandwidth (metres), sets the buffer
        resolution_m: cell size in metres (default: ~config.GRID_TARGET_CELLS cells)

    Returns:
        GridGeometry
    """
    buffer_bw = getattr(config, 'GRID_BUFFER_BANDWIDTHS', 3.0)
    target_cells = getattr(config, 'GRID_TARGET_CELLS', 500)

    buffer = buffer_bw * bandwidth
    x_min = float(np.min(x)) - buffer
    x_max = float(np.max(x)) + buffer
    y_min = float(np.min(y)) - buffer
    y_max = float(np.max(y)) + buffer

    width = max(x_max - x_min, 1.0)
    height = max(y_max - y_min, 1.0)

    if resolution_m is None:
        resolution_m = float(np.sqrt(width * height / target_cells))
    if resolution_m <= 0:
        raise ValueError(f"Grid resolution must be positive, got {resolution_m}")

    ncols = max(1, int(np.ceil(width / resolution_m)))
    nrows = max(1, int(np.ceil(height / resolution_m)))

    return GridGeometry(x_min=x_min, y_min=y_min, cell_size=resolution_m,
                        nrows=nrows, ncols=ncols)


def kernel_density(x, y, geometry, bandwidth):
    """
    Gaussian kernel density of fixes at the cell centres of a grid.

    The kernel is separable, so the grid is evaluated as an outer product of
    per-axis weights instead of per cell.

    Returns:
        np.ndarray: density grid (nrows, ncols), per m²
    """
    x = np.asarray(x, dtype=float)
    y = np.asarray(y, dtype=float)
    xs, ys = geometry.cell_centers()

    wx = norm.pdf(xs[np.newaxis, :], loc=x[:, np.newaxis], scale=bandwidth)  # (n, ncols)
    wy = norm.pdf(ys[np.newaxis, :], loc=y[:, np.newaxis], scale=bandwidth)  # (n, nrows)

    return wy.T.dot(wx) / len(x)


def estimate_surfaces(individuals, scale=None, resolution=None):
    """
    Estimates one UD per individual on a shared grid.

    Args:
        individuals: list of ProjectedIndividual
        scale: smoothing parameter h in km (default: reference bandwidth per individual)
        resolution: cell size in km (default: ~config.GRID_TARGET_CELLS cells)

    Returns:
        dict: {individual_id: UDSurface}
    """
    km_to_m = getattr(config, 'KM_TO_M', 1000.0)

    all_x = np.concatenate([ind.x for ind in individuals])
    all_y = np.concatenate([ind.y for ind in individuals])

    if scale is not None:
        if scale <= 0:
            raise ValueError(f"Scale must be positive, got {scale}")
        bandwidths = {ind.id: scale * km_to_m for ind in individuals}
    else:
        bandwidths = {ind.id: reference_bandwidth(ind.x, ind.y) for ind in individuals}
        usable = [h for h in bandwidths.values() if h > 0]
        if not usable:
            raise ValueError(ERRORS['scale_required'])
        # Single-fix individuals borrow the median bandwidth of the others
        fallback = float(np.median(usable))
        bandwidths = {k: (h if h > 0 else fallback) for k, h in bandwidths.items()}

    resolution_m = resolution * km_to_m if resolution is not None else None
    geometry = build_grid(all_x, all_y, max(bandwidths.values()), resolution_m)
    logger.info(
        f"UD grid: {geometry.nrows}x{geometry.ncols} cells of {geometry.cell_size:.1f} m"
    )

    surfaces = {}
    for ind in individuals:
        values = kernel_density(ind.x, ind.y, geometry, bandwidths[ind.id])
        surfaces[ind.id] = UDSurface(values=values, geometry=geometry)

    return surfaces


def validate_surfaces(surfaces):
    """
    Checks that all surfaces share one grid geometry.

    Raises:
        ShapeMismatchError
    """
    if not surfaces:
        raise ShapeMismatchError(ERRORS['grid_mismatch'].format(detail="no surfaces"))

    items = list(surfaces.items())
    reference_id, reference = items[0]
    for surface_id, surface in items:
        if np.asarray(surface.values).shape != surface.geometry.shape:
            raise ShapeMismatchError(ERRORS['grid_mismatch'].format(
                detail=f"{surface_id} values {np.asarray(surface.values).shape} "
                       f"vs grid {surface.geometry.shape}"
            ))
        if surface.geometry != reference.geometry:
            raise ShapeMismatchError(ERRORS['grid_mismatch'].format(
                detail=f"{surface_id} differs from {reference_id}"
            ))
