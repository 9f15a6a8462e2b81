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
Main RepAssess engine.
Contains assess_representativeness: how well the space use of a tracked
sample represents the population it was drawn from.
"""
import logging

try:
    from .. import config
    from ..locales.strings import ERRORS
except ImportError:
    import config
    from locales.strings import ERRORS

from .asymptote import estimate, fit_saturating_curve
from .density import estimate_surfaces, validate_surfaces
from .errors import InputValidationError
from .orchestrator import run_all, default_worker_count
from .projection import prepare_individuals

logger = logging.getLogger(__name__)


def assess_representativeness(individuals, surfaces=None, iterations=None, scale=None,
                              resolution=None, boot_table=False, boot_table_path=None,
                              workers=None, seed=None):
    """
    Assess sample representativeness.

    The set of individuals is repeatedly sub-sampled at every sample size
    1..n-1. In each trial the UDs of the sample are pooled and the share of
    the fixes of the other individuals inside the pooled 50% core area is
    the inclusion rate. A saturating curve fitted to inclusion vs sample
    size tells how close the full sample is to the asymptote.

    Args:
        individuals: list of ProjectedIndividual
        surfaces: dict {id: UDSurface} on one grid (default: estimated here)
        iterations: repeats per sample size (default: config.ITERATIONS_DEFAULT)
        scale: kernel smoothing parameter in km (only used without surfaces)
        resolution: grid cell size in km (only used without surfaces)
        boot_table: write the raw bootstrap table as CSV
        boot_table_path: CSV path (default: config.BOOT_TABLE_FILENAME)
        workers: worker processes (default: half of the CPUs)
        seed: int or None - seed for a reproducible run

    Returns:
        dict: {
            'result': RepresentativenessResult,
            'trials': tuple of trial tuples,
            'fit': FitSuccess or FitNonConvergent,
            'n_individuals': int,
            'iterations': int,
            'workers': int,
            'boot_table_path': str or None
        }
    """
    if iterations is None:
        iterations = getattr(config, 'ITERATIONS_DEFAULT', 50)
    if workers is None:
        workers = default_worker_count()

    min_individuals = getattr(config, 'MIN_INDIVIDUALS', 2)
    if len(individuals) < min_individuals:
        raise InputValidationError(ERRORS['too_few_individuals'].format(
            min_individuals=min_individuals, count=len(individuals)
        ))

    if surfaces is None:
        surfaces = estimate_surfaces(individuals, scale=scale, resolution=resolution)
    validate_surfaces(surfaces)

    individual_ids = [ind.id for ind in individuals]
    points = {ind.id: ind for ind in individuals}

    persist_path = None
    if boot_table:
        persist_path = boot_table_path or getattr(config, 'BOOT_TABLE_FILENAME', 'bootout_temp.csv')

    trials = run_all(
        individual_ids, surfaces, points,
        iterations=iterations, workers=workers, seed=seed,
        persist_path=persist_path
    )

    fit = fit_saturating_curve(trials)
    result = estimate(trials, fit=fit)

    return {
        'result': result,
        'trials': trials,
        'fit': fit,
        'n_individuals': len(individual_ids),
        'iterations': iterations,
        'workers': workers,
        'boot_table_path': persist_path,
    }


def assess_records(records, **kwargs):
    """
    Same as assess_representativeness, starting from raw relocation records.

    Records are validated and projected first; the projection centre is
    added to the returned dict as 'projection'.
    """
    individuals, projection = prepare_individuals(records)
    assessment = assess_representativeness(individuals, **kwargs)
    assessment['projection'] = projection
    return assessment
