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
Resampling trial engine.

One trial draws a random sample of individuals, pools their UDs, takes the
50% core area of the pooled UD and measures which share of the fixes of
the remaining (held-out) individuals falls inside it.
"""
import logging

import numpy as np

from .structures import UDSurface
from .thresholds import threshold

logger = logging.getLogger(__name__)


def draw_sample(individual_ids, sample_size, rng):
    """
    Draws sample_size distinct IDs uniformly at random.

    Args:
        individual_ids: sequence of all individual IDs
        sample_size: number of IDs to draw (1..len-1)
        rng: np.random.Generator

    Returns:
        tuple: selected IDs
    """
    n_ids = len(individual_ids)
    if not 1 <= sample_size <= n_ids - 1:
        raise ValueError(
            f"Sample size must be between 1 and {n_ids - 1}, got {sample_size}"
        )
    picked = rng.choice(n_ids, size=sample_size, replace=False)
    return tuple(individual_ids[i] for i in sorted(picked))


def pool_surfaces(surfaces):
    """
    Averages surfaces cell by cell.

    Args:
        surfaces: list of UDSurface sharing one geometry

    Returns:
        UDSurface: pooled surface
    """
    stack = np.stack([np.asarray(s.values, dtype=float) for s in surfaces])
    return UDSurface(values=stack.mean(axis=0), geometry=surfaces[0].geometry)


def locate_cells(geometry, x, y):
    """
    Maps coordinates to grid cells.

    Points on the eastern/northern outer edge belong to the last column/row.

    Returns:
        tuple: (rows, cols, on_grid) - rows/cols are only meaningful where on_grid
    """
    x = np.asarray(x, dtype=float)
    y = np.asarray(y, dtype=float)

    on_grid = (
        (x >= geometry.x_min) & (x <= geometry.x_max) &
        (y >= geometry.y_min) & (y <= geometry.y_max)
    )
    cols = np.floor((x - geometry.x_min) / geometry.cell_size).astype(np.int64)
    rows = np.floor((y - geometry.y_min) / geometry.cell_size).astype(np.int64)
    cols = np.clip(cols, 0, geometry.ncols - 1)
    rows = np.clip(rows, 0, geometry.nrows - 1)

    return rows, cols, on_grid


def count_included(mask, geometry, x, y):
    """Number of points whose cell is inside the mask."""
    if len(x) == 0:
        return 0
    rows, cols, on_grid = locate_cells(geometry, x, y)
    inside = np.zeros(len(rows), dtype=bool)
    inside[on_grid] = mask[rows[on_grid], cols[on_grid]]
    return int(inside.sum())


def score_sample(selected_ids, individual_ids, surfaces, points):
    """
    Inclusion rate of held-out fixes in the pooled core area of a sample.

    Degenerate samples (pooled UD empty or missing everywhere, or nothing
    held out) score 0 instead of failing the batch.

    Args:
        selected_ids: IDs in the sample
        individual_ids: all IDs
        surfaces: dict {id: UDSurface}
        points: dict {id: ProjectedIndividual}

    Returns:
        float: inclusion rate in [0, 1]
    """
    selected = set(selected_ids)
    held_out = [i for i in individual_ids if i not in selected]

    held_x = [points[i].x for i in held_out]
    held_y = [points[i].y for i in held_out]
    x = np.concatenate(held_x) if held_x else np.empty(0)
    y = np.concatenate(held_y) if held_y else np.empty(0)
    total = len(x)

    if total == 0:
        logger.warning(f"Degenerate trial: no held-out fixes for sample {sorted(selected)}")
        return 0.0

    pooled = pool_surfaces([surfaces[i] for i in selected_ids])
    pooled_values = pooled.values
    if np.all(np.isnan(pooled_values)) or not np.any(np.nan_to_num(pooled_values) > 0):
        logger.warning(f"Degenerate trial: empty pooled UD for sample {sorted(selected)}")
        return 0.0

    mask = threshold(pooled)
    included = count_included(mask, pooled.geometry, x, y)

    return included / total


def run_trial(individual_ids, sample_size, surfaces, points, rng=None):
    """
    Runs one resampling trial.

    Args:
        individual_ids: sequence of all individual IDs
        sample_size: number of individuals in the sample
        surfaces: dict {id: UDSurface}
        points: dict {id: ProjectedIndividual}
        rng: np.random.Generator (default: fresh unseeded generator)

    Returns:
        float: inclusion rate in [0, 1]
    """
    if rng is None:
        rng = np.random.default_rng()
    selected = draw_sample(individual_ids, sample_size, rng)
    return score_sample(selected, individual_ids, surfaces, points)
