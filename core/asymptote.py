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
Asymptote estimation from bootstrap trials.

Fits the saturating curve inclusion = a·N / (1 + b·N) to all trials. Its
limit a/b is the inclusion rate an ever larger sample would reach. Three
outcomes:

1. asymptote - fit converged, percentages relative to a/b
2. asymptote_adj - fit converged but a/b < 0.45, percentages relative to 0.5
3. inclusion - fit failed, mean inclusion at the largest sample size
"""
import logging
import warnings
from dataclasses import dataclass
from typing import Optional, Union

import numpy as np
from scipy.optimize import curve_fit, OptimizeWarning

try:
    from .. import config
    from ..locales.strings import STATUS
except ImportError:
    import config
    from locales.strings import STATUS

from .structures import (
    TRIAL_SAMPLE_SIZE,
    TRIAL_INCLUSION,
    MODE_ASYMPTOTE,
    MODE_ASYMPTOTE_ADJ,
    MODE_INCLUSION,
    PERCENT,
    RepresentativenessResult,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FitSuccess:
    """Converged fit of a·N / (1 + b·N)."""
    a: float
    b: float

    @property
    def asymptote(self) -> float:
        return self.a / self.b

    def predict(self, sample_sizes):
        return saturating_curve(np.asarray(sample_sizes, dtype=float), self.a, self.b)


@dataclass(frozen=True)
class FitNonConvergent:
    """Fit failed; reason is kept for diagnostics."""
    reason: str


FitResult = Union[FitSuccess, FitNonConvergent]


def saturating_curve(n, a, b):
    """Michaelis-Menten type curve a·N / (1 + b·N)."""
    return (a * n) / (1 + b * n)


def saturating_jacobian(n, a, b):
    """Partial derivatives of the curve w.r.t. (a, b), one row per point."""
    n = np.asarray(n, dtype=float)
    denom = 1 + b * n
    return np.column_stack((n / denom, -a * n ** 2 / denom ** 2))


def trial_arrays(trials):
    """Splits trial tuples into (sample_sizes, inclusions) float arrays."""
    sizes = np.array([t[TRIAL_SAMPLE_SIZE] for t in trials], dtype=float)
    inclusions = np.array([t[TRIAL_INCLUSION] for t in trials], dtype=float)
    return sizes, inclusions


def fit_saturating_curve(trials, start=None):
    """
    Non-linear least squares fit of the saturating curve.

    A scipy failure, non-finite or diverging parameters, a non-finite
    covariance or a rank-deficient / ill-conditioned Jacobian at the
    solution (singular gradient) all count as non-convergence.

    Args:
        trials: trial tuples
        start: (a, b) starting values (default: config.NLS_START)

    Returns:
        FitSuccess or FitNonConvergent
    """
    if start is None:
        start = getattr(config, 'NLS_START', (1.0, 0.1))
    max_evaluations = getattr(config, 'NLS_MAX_EVALUATIONS', 5000)

    sizes, inclusions = trial_arrays(trials)

    try:
        with warnings.catch_warnings():
            warnings.simplefilter('ignore', OptimizeWarning)
            warnings.simplefilter('ignore', RuntimeWarning)
            popt, pcov = curve_fit(
                saturating_curve, sizes, inclusions,
                p0=list(start), maxfev=max_evaluations
            )
    except (RuntimeError, ValueError, TypeError) as e:
        logger.debug(f"Curve fit failed: {e}")
        return FitNonConvergent(reason=str(e))

    a, b = float(popt[0]), float(popt[1])
    if not (np.isfinite(a) and np.isfinite(b)) or b == 0:
        return FitNonConvergent(reason=f"invalid parameters a={a}, b={b}")
    if not np.all(np.isfinite(pcov)):
        return FitNonConvergent(reason="singular gradient: covariance could not be estimated")

    max_parameter = getattr(config, 'NLS_MAX_PARAMETER', 1e6)
    if abs(a) > max_parameter or abs(b) > max_parameter:
        return FitNonConvergent(reason=f"parameters diverged: a={a}, b={b}")

    # curve_fit returns a finite pseudo-inverse covariance for rank-deficient fits
    jacobian = saturating_jacobian(sizes, a, b)
    max_condition = getattr(config, 'NLS_MAX_CONDITION', 1e7)
    if np.linalg.matrix_rank(jacobian) < 2 or np.linalg.cond(jacobian) > max_condition:
        return FitNonConvergent(reason=f"singular gradient at a={a}, b={b}")

    return FitSuccess(a=a, b=b)


def _summarize_fit(trials, fit):
    """Representativeness from a converged fit."""
    adj_threshold = getattr(config, 'ASYMPTOTE_ADJ_THRESHOLD', 0.45)
    upper = getattr(config, 'ASYMPTOTE_UPPER', 0.6)
    target = getattr(config, 'TARGET_MASS', 0.5)

    sizes, _ = trial_arrays(trials)
    predicted = fit.predict(sizes)
    asymptote = fit.asymptote

    if asymptote < adj_threshold:
        reference = target
        mode = MODE_ASYMPTOTE_ADJ
    else:
        reference = asymptote
        mode = MODE_ASYMPTOTE

    unique_sizes = np.unique(sizes)
    best_per_size = np.array([predicted[sizes == n].max() for n in unique_sizes])
    percents = best_per_size / reference * PERCENT

    # np.argmax takes the first maximum: the smallest sample size on ties
    best = int(np.argmax(percents))

    asymptote_adjusted = None
    if asymptote < adj_threshold or asymptote > upper:
        asymptote_adjusted = target

    return RepresentativenessResult(
        sample_size=int(unique_sizes[best]),
        percent=float(percents[best]),
        mode=mode,
        asymptote=float(asymptote),
        asymptote_adjusted=asymptote_adjusted,
        message=STATUS['nls_success'],
    )


def _summarize_inclusion(trials):
    """Representativeness from mean inclusion at the largest sample size."""
    sizes, inclusions = trial_arrays(trials)
    largest = sizes.max()
    mean_inclusion = float(np.mean(inclusions[sizes == largest]))
    percent = mean_inclusion * PERCENT

    return RepresentativenessResult(
        sample_size=int(largest),
        percent=percent,
        mode=MODE_INCLUSION,
        # Same mean, expressed so that asymptote == percent / 100 holds exactly
        asymptote=percent / PERCENT,
        message=STATUS['nls_failed'],
    )


def estimate(trials, fit: Optional[FitResult] = None):
    """
    Converts bootstrap trials into a representativeness result.

    Args:
        trials: trial tuples (sample_size, iteration, inclusion_mean, ...)
        fit: precomputed FitResult (default: fitted here)

    Returns:
        RepresentativenessResult
    """
    if not trials:
        raise ValueError("No trials to estimate representativeness from")

    if fit is None:
        fit = fit_saturating_curve(trials)

    if isinstance(fit, FitSuccess):
        result = _summarize_fit(trials, fit)
        logger.info(result.message)
    else:
        result = _summarize_inclusion(trials)
        logger.warning(f"{result.message} ({fit.reason})")

    return result
