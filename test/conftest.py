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
Shared helpers for RepAssess tests: synthetic populations and grids.
"""
import os
import sys

import matplotlib
matplotlib.use('Agg')

import numpy as np
import pytest

# Add parent directory to path for imports
PARENT_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if PARENT_DIR not in sys.path:
    sys.path.insert(0, PARENT_DIR)

from core.structures import GridGeometry, ProjectedIndividual, UDSurface


def make_individuals(n_individuals, n_fixes=30, seed=0, spread=2000.0, home_spread=1500.0):
    """
    Synthetic population in projected metres.

    Each individual ranges normally around its own home centre; home centres
    are scattered around the origin.
    """
    rng = np.random.default_rng(seed)
    individuals = []
    for k in range(n_individuals):
        home = rng.normal(0.0, home_spread, 2)
        x = home[0] + rng.normal(0.0, spread, n_fixes)
        y = home[1] + rng.normal(0.0, spread, n_fixes)
        individuals.append(ProjectedIndividual(id=f"ID{k:02d}", x=x, y=y))
    return individuals


def unit_grid(nrows=4, ncols=4):
    """Grid of 1 m cells with its lower-left corner at the origin."""
    return GridGeometry(x_min=0.0, y_min=0.0, cell_size=1.0, nrows=nrows, ncols=ncols)


def hotspot_surface(geometry, row, col):
    """
    Surface whose 50% core area is exactly one cell.

    The hot cell holds 0.4 of the mass, a neighbour 0.35 (it crosses 0.5
    and is excluded), the rest is spread evenly.
    """
    n_cells = geometry.nrows * geometry.ncols
    values = np.full(geometry.shape, 0.25 / (n_cells - 2))
    values[row, col] = 0.4
    neighbour_col = (col + 1) % geometry.ncols
    values[row, neighbour_col] = 0.35
    return UDSurface(values=values / geometry.cell_size ** 2, geometry=geometry)


def fixes_at(individual_id, coords):
    """ProjectedIndividual with fixes at the given (x, y) pairs."""
    coords = np.asarray(coords, dtype=float).reshape(-1, 2)
    return ProjectedIndividual(id=individual_id, x=coords[:, 0], y=coords[:, 1])


@pytest.fixture
def population():
    """Eight synthetic individuals, 30 fixes each."""
    return make_individuals(8)
