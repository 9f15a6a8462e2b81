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
Tests for core-area thresholding (50% contour, strict boundary).
"""
import numpy as np
import pytest

from conftest import unit_grid, hotspot_surface
from core.errors import ShapeMismatchError
from core.structures import GridGeometry, UDSurface
from core.thresholds import threshold, cell_mass, core_area_mass


def uniform_surface(n_side, cell_size=1.0):
    """n_side x n_side surface with equal mass 1/n² in every cell."""
    geometry = GridGeometry(x_min=0.0, y_min=0.0, cell_size=cell_size, nrows=n_side, ncols=n_side)
    density = 1.0 / (n_side * n_side) / cell_size ** 2
    return UDSurface(values=np.full(geometry.shape, density), geometry=geometry)


def random_surface(seed, nrows=12, ncols=9, cell_size=250.0):
    rng = np.random.default_rng(seed)
    geometry = GridGeometry(x_min=-1000.0, y_min=500.0, cell_size=cell_size, nrows=nrows, ncols=ncols)
    raw = rng.gamma(0.5, 1.0, size=geometry.shape)
    values = raw / raw.sum() / cell_size ** 2
    return UDSurface(values=values, geometry=geometry)


def test_uniform_surface_excludes_cell_reaching_half():
    """64 cells of mass 1/64: cumulative mass hits 0.5 exactly at cell 32, which is excluded."""
    surface = uniform_surface(8)
    mask = threshold(surface)

    assert mask.sum() == 31
    # Equal masses keep their row-major order
    flat = mask.ravel()
    assert flat[:31].all()
    assert not flat[31:].any()


def test_hundred_cells_of_one_percent():
    """100 cells of mass 0.01: the float cumulative sum at cell 50 is just above 0.5, so 49 are inside."""
    surface = uniform_surface(10)
    assert np.cumsum(cell_mass(surface).ravel())[49] >= 0.5

    mask = threshold(surface)

    assert mask.sum() == 49
    assert mask.ravel()[:49].all()


def test_mass_uses_squared_cell_size():
    """Mass is density × cell_size², so the same mass layout on 2 m cells gives the same mask."""
    small = uniform_surface(8, cell_size=1.0)
    large = uniform_surface(8, cell_size=2.0)

    assert cell_mass(large).sum() == pytest.approx(1.0)
    np.testing.assert_array_equal(threshold(small), threshold(large))


@pytest.mark.parametrize("seed", [0, 1, 2, 3, 4])
def test_boundary_tightness(seed):
    """Inside mass < 0.5, and adding the next highest cell reaches >= 0.5."""
    surface = random_surface(seed)
    mask = threshold(surface)
    mass = cell_mass(surface)

    inside_mass = core_area_mass(surface, mask)
    assert inside_mass < 0.5

    next_cell = mass[~mask].max()
    assert inside_mass + next_cell >= 0.5


@pytest.mark.parametrize("seed", [0, 7])
def test_inside_cells_outrank_outside_cells(seed):
    surface = random_surface(seed)
    mask = threshold(surface)
    mass = cell_mass(surface)

    assert mass[mask].min() >= mass[~mask].max()


def test_threshold_is_idempotent():
    for surface in (uniform_surface(10), random_surface(3)):
        np.testing.assert_array_equal(threshold(surface), threshold(surface))


def test_hotspot_core_area_is_single_cell():
    geometry = unit_grid()
    mask = threshold(hotspot_surface(geometry, 1, 2))

    assert mask.sum() == 1
    assert mask[1, 2]


def test_custom_target_mass():
    surface = uniform_surface(8)
    mask = threshold(surface, target_mass=0.25)
    # Cell 16 reaches 0.25 exactly and is excluded
    assert mask.sum() == 15


def test_missing_cells_are_never_inside():
    surface = uniform_surface(8)
    values = surface.values.copy()
    values[0, :4] = np.nan
    masked = UDSurface(values=values, geometry=surface.geometry)

    mask = threshold(masked)

    assert not mask[0, :4].any()
    assert core_area_mass(masked, mask) < 0.5


def test_shape_mismatch_raises():
    geometry = unit_grid(4, 4)
    surface = UDSurface(values=np.ones((3, 4)), geometry=geometry)

    with pytest.raises(ShapeMismatchError):
        threshold(surface)
