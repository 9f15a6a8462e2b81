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
Fatal input errors.

Only these two stop a run. Curve-fit non-convergence and degenerate trials
are handled where they occur (fallback mode, zero score).
"""


class InputValidationError(ValueError):
    """Relocation data lacks required fields or individuals."""


class ShapeMismatchError(ValueError):
    """UD surfaces do not share one grid geometry."""
