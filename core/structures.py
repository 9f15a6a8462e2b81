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
Core data layouts used in the RepAssess pipeline.

Trials are kept as plain tuples for compactness (a run easily produces tens
of thousands of them and they travel between worker processes). These
constants document that layout so other modules can refer to well-named
indices instead of bare numbers.

Trial tuple (``trials``)
------------------------
Produced by ``core.orchestrator.run_all``::

    (
        sample_size,     # 0 - number of individuals drawn into the sample
        iteration,       # 1 - repeat index at this sample size (1-based)
        inclusion_mean,  # 2 - fraction of held-out fixes inside the core area
        selected_ids,    # 3 - tuple of individual IDs drawn into the sample
    )

Grids
-----
Surfaces are 2D arrays indexed ``[row, col]``; row 0 is the southern-most
row and column 0 the western-most column. Cell ``(r, c)`` covers
``x_min + c*cell_size <= x < x_min + (c+1)*cell_size`` and the same for y.
"""
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

# Indices for elements of trial tuples
TRIAL_SAMPLE_SIZE = 0
TRIAL_ITERATION = 1
TRIAL_INCLUSION = 2
TRIAL_SELECTED_IDS = 3

# Estimation modes
MODE_ASYMPTOTE = 'asymptote'
MODE_ASYMPTOTE_ADJ = 'asymptote_adj'
MODE_INCLUSION = 'inclusion'

# Unit conversion constants
PERCENT = 100.0  # fraction to percentage


@dataclass(frozen=True)
class GridGeometry:
    """Placement and size of a regular grid (projected metres)."""
    x_min: float
    y_min: float
    cell_size: float
    nrows: int
    ncols: int

    @property
    def shape(self) -> Tuple[int, int]:
        return (self.nrows, self.ncols)

    @property
    def x_max(self) -> float:
        return self.x_min + self.ncols * self.cell_size

    @property
    def y_max(self) -> float:
        return self.y_min + self.nrows * self.cell_size

    def cell_centers(self):
        """Return (xs, ys) 1D arrays of column and row centre coordinates."""
        half = self.cell_size / 2.0
        xs = self.x_min + half + self.cell_size * np.arange(self.ncols)
        ys = self.y_min + half + self.cell_size * np.arange(self.nrows)
        return xs, ys


@dataclass(frozen=True)
class UDSurface:
    """Utilization distribution of one individual (density per m²)."""
    values: np.ndarray
    geometry: GridGeometry


@dataclass(frozen=True)
class ProjectedIndividual:
    """Time-ordered fixes of one individual in projected metres."""
    id: str
    x: np.ndarray
    y: np.ndarray

    @property
    def n_fixes(self) -> int:
        return len(self.x)


@dataclass(frozen=True)
class RepresentativenessResult:
    """Final output of one assessment run."""
    sample_size: int                # Sample size the percentage refers to
    percent: float                  # Representativeness, %
    mode: str                       # asymptote, asymptote_adj or inclusion
    asymptote: float                # Asymptote value used
    asymptote_adjusted: Optional[float] = None  # 0.5 when the fitted asymptote is out of range
    message: str = ''

    def to_dict(self):
        """Row layout of the classic representativeness table."""
        row = {
            'SampleSize': self.sample_size,
            'out': self.percent,
            'type': self.mode,
            'asym': self.asymptote,
        }
        if self.asymptote_adjusted is not None:
            row['asym_adj'] = self.asymptote_adjusted
        return row
