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

"""Raw bootstrap table export (CSV)."""
import csv
import logging

try:
    from .. import config
except ImportError:
    import config

from .structures import TRIAL_SAMPLE_SIZE, TRIAL_INCLUSION, TRIAL_ITERATION

logger = logging.getLogger(__name__)


def write_trial_table(trials, path):
    """
    Writes trials as SampleSize,InclusionMean,Iteration rows.

    Args:
        trials: iterable of trial tuples
        path: output CSV path

    Returns:
        str: path written
    """
    columns = getattr(config, 'BOOT_TABLE_COLUMNS', ('SampleSize', 'InclusionMean', 'Iteration'))

    with open(path, 'w', newline='') as f:
        writer = csv.writer(f)
        writer.writerow(columns)
        for trial in trials:
            writer.writerow([
                trial[TRIAL_SAMPLE_SIZE],
                trial[TRIAL_INCLUSION],
                trial[TRIAL_ITERATION],
            ])

    logger.info(f"Bootstrap table written to {path}")
    return path


def read_trial_table(path):
    """
    Reads a table written by write_trial_table.

    Selected IDs are not stored in the CSV and come back as empty tuples.

    Returns:
        tuple: trial tuples
    """
    trials = []
    with open(path, 'r', newline='') as f:
        for row in csv.DictReader(f):
            trials.append((
                int(row['SampleSize']),
                int(row['Iteration']),
                float(row['InclusionMean']),
                (),
            ))
    return tuple(trials)
