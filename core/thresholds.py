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
Core-area thresholding of utilization distributions.

A cell belongs to the core area when, walking the cells from the highest to
the lowest probability mass, the cumulative mass up to and including that
cell is still strictly below the target (0.5 for the 50% contour). The cell
that brings the cumulative mass to the target is excluded.
"""
import numpy as np

try:
    from .. import config
except ImportError:
    import config

from .errors import ShapeMismatchError


def cell_mass(surface):
    """
    Probability mass per cell.

    Mass = density × cell_size², with cell_size the grid resolution.
    Missing densities carry no mass.

    Args:
        surface: UDSurface

    Returns:
        np.ndarray: mass grid, same shape as surface.values
    """
    values = np.asarray(surface.values, dtype=float)
    if values.shape != surface.geometry.shape:
        raise ShapeMismatchError(
            f"Surface values {values.shape} do not match grid {surface.geometry.shape}"
        )
    pixel = surface.geometry.cell_size
    return np.nan_to_num(values, nan=0.0) * (pixel ** 2)


def threshold(surface, target_mass=None):
    """
    Builds the core-area mask of a surface.

    Args:
        surface: UDSurface
        target_mass: cumulative mass of the contour (default: config.TARGET_MASS)

    Returns:
        np.ndarray: boolean mask, True = inside the core area
    """
    if target_mass is None:
        target_mass = getattr(config, 'TARGET_MASS', 0.5)

    mass = cell_mass(surface)
    flat = mass.ravel()

    # Descending by mass; stable sort keeps equal cells in row-major order
    order = np.argsort(-flat, kind='stable')
    cumulative = np.cumsum(flat[order])

    inside_sorted = cumulative < target_mass
    inside = np.zeros(flat.shape, dtype=bool)
    inside[order] = inside_sorted

    # NaN cells are never part of the contour
    missing = np.isnan(np.asarray(surface.values, dtype=float)).ravel()
    inside[missing] = False

    return inside.reshape(mass.shape)


def core_area_mass(surface, mask):
    """Total probability mass inside a mask."""
    return float(cell_mass(surface)[mask].sum())
