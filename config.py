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
Configuration file for RepAssess.
Contains all constants and settings for the representativeness assessment.

Every value can be overridden per call (keyword arguments of
core.assessment.assess_representativeness) or from the command line.
"""

# ============================================================
# Bootstrap Parameters
# ============================================================
ITERATIONS_DEFAULT = 50        # Repeats of the sub-sampling at each sample size
MIN_INDIVIDUALS = 2            # At least one in-sample and one held-out individual
WORKERS_CPU_FRACTION = 0.5     # Default worker count = half of available CPUs

# ============================================================
# Core Area Parameters
# ============================================================
TARGET_MASS = 0.5              # Core area = 50% contour of the pooled UD

# ============================================================
# Asymptote Estimation Parameters
# ============================================================
NLS_START = (1.0, 0.1)         # Starting values (a, b) for a*N / (1 + b*N)
NLS_MAX_EVALUATIONS = 5000     # Maximum function evaluations for curve_fit
NLS_MAX_PARAMETER = 1e6        # |a| or |b| beyond this -> fit diverged
NLS_MAX_CONDITION = 1e7        # Jacobian condition number beyond this -> singular gradient
ASYMPTOTE_ADJ_THRESHOLD = 0.45 # Fitted asymptote below this -> compare against TARGET_MASS
ASYMPTOTE_UPPER = 0.6          # Fitted asymptote above this is also flagged as adjusted

# ============================================================
# Kernel Density (UD) Parameters
# ============================================================
GRID_TARGET_CELLS = 500        # Default grid size when no resolution is given
GRID_BUFFER_BANDWIDTHS = 3.0   # Grid extent buffer around the data, in bandwidths
KM_TO_M = 1000.0               # Scale and resolution are given in km

# ============================================================
# Projection Parameters
# ============================================================
GEOGRAPHIC_CRS = 'EPSG:4326'   # Latitude/Longitude input (WGS84)
LAEA_PROJ_TEMPLATE = '+proj=laea +lat_0={lat_0} +lon_0={lon_0} +x_0=0 +y_0=0 +datum=WGS84 +units=m +no_defs'
DATELINE_LON_LIMIT = 170.0     # Data beyond +-170 on both sides spans the dateline

# ============================================================
# Input Fields
# ============================================================
FIELD_ID = 'ID'
FIELD_LATITUDE = 'Latitude'
FIELD_LONGITUDE = 'Longitude'
FIELD_X = 'X'
FIELD_Y = 'Y'
FIELD_DATETIME = 'DateTime'

# ============================================================
# Output Files
# ============================================================
BOOT_TABLE_FILENAME = 'bootout_temp.csv'
BOOT_TABLE_COLUMNS = ('SampleSize', 'InclusionMean', 'Iteration')

# ============================================================
# Diagnostic Thresholds
# ============================================================
LOW_INDIVIDUALS_WARNING = 5    # Fewer individuals than this -> caution
LOW_ITERATIONS_CAUTION = 10    # Fewer iterations than this -> caution
REPRESENTATIVE_PERCENT = 70.0  # Percent below this -> warning

# ============================================================
# Visualization Parameters
# ============================================================
PLOT_FIGSIZE = (6, 5)
PLOT_DPI = 150
PLOT_POINT_COLOR = 'darkgray'
PLOT_POINT_SIZE = 4
PLOT_BAND_COLOR = '#ededed'    # gray93
PLOT_BAND_SD_FRACTION = 0.5    # Band = mean prediction +- 0.5 SD of inclusion
PLOT_LINE_WIDTH = 2
PLOT_ANNOTATION_COLOR = '#737373'  # gray45
PLOT_ANNOTATION_FONTSIZE = 20
