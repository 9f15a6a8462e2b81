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
Warning and notification generation module.
Single point for all diagnostics of an assessment result.
"""

import logging

try:
    from .. import config
    from ..locales.strings import WARNINGS, CAUTIONS
except ImportError:
    import config
    from locales.strings import WARNINGS, CAUTIONS

from .structures import MODE_ASYMPTOTE_ADJ, MODE_INCLUSION, TRIAL_INCLUSION

logger = logging.getLogger(__name__)


def compute_warnings(assessment):
    """
    Unified function for computing all warnings.

    Args:
        assessment: dict returned by assess_representativeness

    Returns:
        tuple: (warnings: dict, cautions: dict)
    """
    warnings = {}
    cautions = {}

    if not assessment:
        return warnings, cautions

    result = assessment.get('result')

    # 1. Estimation mode
    _check_mode(result, warnings, cautions)

    # 2. Representativeness level
    _check_percent(result, warnings)

    # 3. Trials without any inclusion
    _check_zero_inclusion(assessment.get('trials'), warnings)

    # 4. Sampling effort
    _check_effort(assessment.get('n_individuals'), assessment.get('iterations'), cautions)

    return warnings, cautions


def _check_mode(result, warnings, cautions):
    """Check how the percentage was derived."""
    if result is None:
        return

    if result.mode == MODE_INCLUSION:
        warnings['no_asymptote'] = WARNINGS['no_asymptote'].format(sample_size=result.sample_size)
    elif result.mode == MODE_ASYMPTOTE_ADJ:
        threshold = getattr(config, 'ASYMPTOTE_ADJ_THRESHOLD', 0.45)
        cautions['asymptote_adjusted'] = CAUTIONS['asymptote_adjusted'].format(
            asymptote=result.asymptote, threshold=threshold
        )
    elif result.asymptote_adjusted is not None:
        cautions['asymptote_out_of_range'] = CAUTIONS['asymptote_out_of_range'].format(
            asymptote=result.asymptote
        )


def _check_percent(result, warnings):
    """Check representativeness level."""
    if result is None:
        return

    threshold = getattr(config, 'REPRESENTATIVE_PERCENT', 70.0)
    if result.percent < threshold:
        warnings['low_representativeness'] = WARNINGS['low_representativeness'].format(
            percent=result.percent, threshold=threshold
        )


def _check_zero_inclusion(trials, warnings):
    """Check for trials whose core area missed every held-out fix."""
    if not trials:
        return

    zero = sum(1 for t in trials if t[TRIAL_INCLUSION] == 0)
    if zero > 0:
        warnings['zero_inclusion'] = WARNINGS['zero_inclusion'].format(count=zero, total=len(trials))


def _check_effort(n_individuals, iterations, cautions):
    """Check number of individuals and iterations."""
    few_individuals = getattr(config, 'LOW_INDIVIDUALS_WARNING', 5)
    few_iterations = getattr(config, 'LOW_ITERATIONS_CAUTION', 10)

    if n_individuals is not None and n_individuals < few_individuals:
        cautions['few_individuals'] = CAUTIONS['few_individuals'].format(count=n_individuals)

    if iterations is not None and iterations < few_iterations:
        cautions['few_iterations'] = CAUTIONS['few_iterations'].format(iterations=iterations)
