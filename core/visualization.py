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
RepAssess visualization module.

Inclusion vs sample size chart using matplotlib. Runs after the assessment
and only reads its results.
"""
import logging

import matplotlib.pyplot as plt
import numpy as np

try:
    from .. import config
    from ..locales.strings import LABELS
except ImportError:
    import config
    from locales.strings import LABELS

from .asymptote import FitSuccess, trial_arrays

logger = logging.getLogger(__name__)


def summarize_curve(trials, fit=None):
    """
    Per sample size mean curve and inclusion spread.

    The curve is the mean fitted prediction when a fit is available,
    otherwise the mean observed inclusion.

    Args:
        trials: trial tuples
        fit: FitSuccess, FitNonConvergent or None

    Returns:
        dict: {'sample_sizes', 'mean', 'sd'} arrays, one entry per sample size
    """
    sizes, inclusions = trial_arrays(trials)
    curve_values = fit.predict(sizes) if isinstance(fit, FitSuccess) else inclusions

    unique_sizes = np.unique(sizes)
    means = np.empty(len(unique_sizes))
    sds = np.zeros(len(unique_sizes))
    for k, n in enumerate(unique_sizes):
        at_size = sizes == n
        means[k] = np.nanmean(curve_values[at_size])
        if np.sum(at_size) > 1:
            sds[k] = np.std(inclusions[at_size], ddof=1)

    return {'sample_sizes': unique_sizes, 'mean': means, 'sd': sds}


def plot_inclusion_curve(trials, result, fit=None, output_file=None):
    """Build the inclusion vs sample size chart.

    Args:
        trials: trial tuples
        result: RepresentativenessResult
        fit: FitResult used for the result (optional)
        output_file: image path (None shows the chart interactively)

    Returns:
        str or None: path of the saved chart
    """
    if not trials:
        logger.warning("No trials for chart building")
        return None

    sizes, inclusions = trial_arrays(trials)
    curve = summarize_curve(trials, fit)
    band_fraction = getattr(config, 'PLOT_BAND_SD_FRACTION', 0.5)

    upper = curve['mean'] + band_fraction * curve['sd']
    lower = curve['mean'] - band_fraction * curve['sd']

    plt.figure(figsize=getattr(config, 'PLOT_FIGSIZE', (6, 5)))

    plt.fill_between(curve['sample_sizes'], lower, upper,
                     color=config.PLOT_BAND_COLOR, linewidth=0, zorder=1)
    plt.scatter(sizes, inclusions, s=config.PLOT_POINT_SIZE,
                color=config.PLOT_POINT_COLOR, zorder=2)
    plt.plot(curve['sample_sizes'], curve['mean'], '-', color='black',
             linewidth=config.PLOT_LINE_WIDTH, zorder=3)

    plt.text(0, 0.99, f"{round(result.percent, 2)}%",
             fontsize=config.PLOT_ANNOTATION_FONTSIZE,
             color=config.PLOT_ANNOTATION_COLOR,
             ha='left', va='top')

    plt.ylim(0, 1)
    plt.xlim(0, float(sizes.max()))
    plt.xlabel(LABELS['sample_size_axis'])
    plt.ylabel(LABELS['inclusion_axis'])
    plt.title(f"{LABELS['title']} ({result.mode})", fontsize=10)
    plt.tight_layout()

    if output_file:
        plt.savefig(output_file, dpi=getattr(config, 'PLOT_DPI', 150),
                    bbox_inches='tight', facecolor='white')
        logger.info(f"Chart saved to {output_file}")
    else:
        plt.show()

    plt.close()

    return output_file
