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
User-facing strings for RepAssess (English).
"""

# Error messages
ERRORS = {
    'file_not_found': "File not found: {file_path}",
    'missing_field': "{field} field does not exist",
    'missing_value': "Missing {field} value in row {row}",
    'invalid_value': "Invalid {field} value '{value}' in row {row}",
    'too_few_individuals': "At least {min_individuals} individuals are required, got {count}",
    'scale_required': "Scale (smoothing parameter) is required when UDs are not supplied",
    'grid_mismatch': "UD surfaces do not share one grid: {detail}",
}

# Status messages of the asymptote estimation
STATUS = {
    'nls_success': "nls (non linear regression) successful, asymptote estimated for bootstrap sample.",
    'nls_failed': (
        "WARNING: nls (non linear regression) unsuccessful, likely due to 'singular gradient', "
        "which means there is no asymptote. Data may not be representative, output derived from "
        "mean inclusion value at highest sample size. Check bootstrap output csv file"
    ),
}

# Warnings - the result should not be trusted as is
WARNINGS = {
    'no_asymptote': "No asymptote could be fitted; result is the mean inclusion at sample size {sample_size}",
    'low_representativeness': "Sample is {percent:.1f}% representative (below {threshold:.0f}%)",
    'zero_inclusion': "{count} of {total} trials included no held-out fixes at all",
}

# Cautions - worth a look
CAUTIONS = {
    'asymptote_adjusted': "Fitted asymptote {asymptote:.3f} is below {threshold}; compared against 0.5 instead",
    'asymptote_out_of_range': "Fitted asymptote {asymptote:.3f} is far from the expected 0.5",
    'few_individuals': "Only {count} individuals tracked; the inclusion curve is short",
    'few_iterations': "Only {iterations} iterations per sample size; consider more",
}

# Axis labels and titles
LABELS = {
    'title': "Inclusion of held-out fixes in pooled 50% UD",
    'sample_size_axis': "SampleSize",
    'inclusion_axis': "Inclusion",
}
