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
Trial orchestration.

Builds the (sample size × iteration) grid and runs every trial, either in
this process or on a worker pool. Trials are independent: each one gets its
own random generator spawned from a single SeedSequence, so results do not
depend on scheduling and a seed makes a whole run reproducible.
"""
import logging
import multiprocessing as mp
import os
from functools import partial

import numpy as np

try:
    from .. import config
except ImportError:
    import config

from .errors import InputValidationError
from .export import write_trial_table
from .resampling import draw_sample, score_sample

logger = logging.getLogger(__name__)


def default_worker_count():
    """Half of the available CPUs, at least one."""
    fraction = getattr(config, 'WORKERS_CPU_FRACTION', 0.5)
    return max(1, int((os.cpu_count() or 1) * fraction))


def trial_grid(n_individuals, iterations):
    """
    All (sample_size, iteration) pairs, sample sizes 1..n-1, iterations 1..K.

    Returns:
        list of tuples
    """
    return [
        (sample_size, iteration)
        for sample_size in range(1, n_individuals)
        for iteration in range(1, iterations + 1)
    ]


def _run_trial_task(context, task):
    """Worker entry point: (sample_size, iteration, seed) -> trial tuple."""
    individual_ids, surfaces, points = context
    sample_size, iteration, seed = task
    rng = np.random.default_rng(seed)
    selected = draw_sample(individual_ids, sample_size, rng)
    inclusion = score_sample(selected, individual_ids, surfaces, points)
    return (sample_size, iteration, inclusion, selected)


def run_all(individual_ids, surfaces, points, iterations=None, workers=None,
            seed=None, persist_path=None):
    """
    Runs the full bootstrap.

    Args:
        individual_ids: sequence of all individual IDs
        surfaces: dict {id: UDSurface}, one shared grid
        points: dict {id: ProjectedIndividual}
        iterations: repeats per sample size (default: config.ITERATIONS_DEFAULT)
        workers: number of worker processes (default: half of the CPUs)
        seed: int or None - seed for reproducible runs
        persist_path: optional CSV path for the raw trial table

    Returns:
        tuple: trial tuples (sample_size, iteration, inclusion_mean, selected_ids)
    """
    if iterations is None:
        iterations = getattr(config, 'ITERATIONS_DEFAULT', 50)
    if iterations < 1:
        raise ValueError(f"Iterations must be positive, got {iterations}")

    individual_ids = list(individual_ids)
    min_individuals = getattr(config, 'MIN_INDIVIDUALS', 2)
    if len(individual_ids) < min_individuals:
        raise InputValidationError(
            f"At least {min_individuals} individuals are required, got {len(individual_ids)}"
        )

    missing = [i for i in individual_ids if i not in surfaces or i not in points]
    if missing:
        raise InputValidationError(f"No UD or fixes for individuals: {missing}")

    if workers is None:
        workers = default_worker_count()

    grid = trial_grid(len(individual_ids), iterations)
    seeds = np.random.SeedSequence(seed).spawn(len(grid))
    tasks = [(n, i, s) for (n, i), s in zip(grid, seeds)]
    context = (individual_ids, surfaces, points)

    logger.info(f"Running {len(tasks)} trials on {workers} worker(s)")

    if workers <= 1 or len(tasks) < 2:
        trials = [_run_trial_task(context, task) for task in tasks]
    else:
        chunksize = max(1, len(tasks) // (workers * 4))
        with mp.Pool(processes=workers) as pool:
            trials = pool.map(partial(_run_trial_task, context), tasks, chunksize=chunksize)

    trials = tuple(trials)

    if persist_path:
        write_trial_table(trials, persist_path)

    return trials
