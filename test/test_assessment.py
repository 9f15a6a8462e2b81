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
End-to-end tests: assessment engine, diagnostics, chart and CLI.
"""
import json
import math
import os
import sys

import numpy as np
import pytest

import repassess_cli
from conftest import make_individuals
from core.asymptote import FitSuccess, FitNonConvergent
from core.assessment import assess_representativeness, assess_records
from core.errors import InputValidationError
from core.structures import (
    MODE_ASYMPTOTE,
    MODE_ASYMPTOTE_ADJ,
    MODE_INCLUSION,
    RepresentativenessResult,
)
from core.visualization import summarize_curve, plot_inclusion_curve
from core.warnings import compute_warnings


def run_small(population, **kwargs):
    options = dict(iterations=3, scale=1.0, resolution=0.5, workers=1, seed=42)
    options.update(kwargs)
    return assess_representativeness(population, **options)


class TestAssessRepresentativeness:
    def test_end_to_end(self, population):
        assessment = run_small(population)
        result = assessment['result']

        assert len(assessment['trials']) == 7 * 3
        assert assessment['n_individuals'] == 8
        assert assessment['iterations'] == 3
        assert assessment['boot_table_path'] is None
        assert math.isfinite(result.percent)
        assert 1 <= result.sample_size <= 7

        if isinstance(assessment['fit'], FitSuccess):
            assert result.mode in (MODE_ASYMPTOTE, MODE_ASYMPTOTE_ADJ)
        else:
            assert result.mode == MODE_INCLUSION
            assert result.sample_size == 7
            assert result.asymptote == result.percent / 100

    def test_seeded_runs_agree(self, population):
        first = run_small(population)
        second = run_small(population)

        assert first['trials'] == second['trials']
        assert first['result'] == second['result']

    def test_boot_table_written(self, population, tmp_path):
        path = str(tmp_path / "boot.csv")
        assessment = run_small(population, boot_table=True, boot_table_path=path)

        assert assessment['boot_table_path'] == path
        with open(path) as f:
            lines = f.read().splitlines()
        assert lines[0] == "SampleSize,InclusionMean,Iteration"
        assert len(lines) == 1 + 21

    def test_supplied_surfaces_are_used(self, population):
        from core.density import estimate_surfaces
        surfaces = estimate_surfaces(population, scale=1.0, resolution=0.5)

        supplied = assess_representativeness(population, surfaces=surfaces, iterations=2,
                                             workers=1, seed=3)
        estimated = run_small(population, iterations=2, seed=3)

        assert supplied['trials'] == estimated['trials']

    def test_too_few_individuals(self):
        with pytest.raises(InputValidationError, match="At least 2 individuals"):
            run_small(make_individuals(1))

    def test_records_are_projected(self):
        rng = np.random.default_rng(1)
        records = []
        for k in range(4):
            centre = (60.0 + 0.02 * k, 15.0 - 0.02 * k)
            for _ in range(12):
                records.append({
                    'ID': f"T{k}",
                    'Latitude': centre[0] + rng.normal(0.0, 0.01),
                    'Longitude': centre[1] + rng.normal(0.0, 0.02),
                })

        assessment = assess_records(records, iterations=2, scale=0.5, workers=1, seed=1)

        assert assessment['projection']['lat_0'] == pytest.approx(60.03, abs=0.05)
        assert len(assessment['trials']) == 3 * 2


def _assessment(mode, percent, asymptote, asymptote_adjusted=None, iterations=50,
                n_individuals=20, inclusions=(0.2, 0.3)):
    result = RepresentativenessResult(
        sample_size=19, percent=percent, mode=mode, asymptote=asymptote,
        asymptote_adjusted=asymptote_adjusted,
    )
    trials = tuple((1, i + 1, value, ()) for i, value in enumerate(inclusions))
    return {
        'result': result,
        'trials': trials,
        'n_individuals': n_individuals,
        'iterations': iterations,
    }


class TestWarnings:
    def test_fallback_and_few_iterations(self):
        warnings, cautions = compute_warnings(_assessment(MODE_INCLUSION, 35.0, 0.35, iterations=3))

        assert 'no_asymptote' in warnings
        assert 'low_representativeness' in warnings
        assert 'few_iterations' in cautions

    def test_adjusted_asymptote(self):
        _, cautions = compute_warnings(_assessment(MODE_ASYMPTOTE_ADJ, 80.0, 0.4, asymptote_adjusted=0.5))
        assert 'asymptote_adjusted' in cautions

    def test_out_of_range_asymptote(self):
        _, cautions = compute_warnings(_assessment(MODE_ASYMPTOTE, 90.0, 0.8, asymptote_adjusted=0.5))
        assert 'asymptote_out_of_range' in cautions

    def test_healthy_result_is_quiet(self):
        warnings, cautions = compute_warnings(_assessment(MODE_ASYMPTOTE, 92.0, 0.52))
        assert warnings == {}
        assert cautions == {}

    def test_zero_inclusion_and_few_individuals(self):
        warnings, cautions = compute_warnings(
            _assessment(MODE_ASYMPTOTE, 92.0, 0.52, n_individuals=3, inclusions=(0.0, 0.4))
        )
        assert 'zero_inclusion' in warnings
        assert 'few_individuals' in cautions

    def test_empty_assessment(self):
        assert compute_warnings({}) == ({}, {})


class TestChart:
    TRIALS = ((1, 1, 0.2, ()), (1, 2, 0.4, ()), (2, 1, 0.5, ()), (2, 2, 0.5, ()))

    def test_summary_without_fit_uses_observed_means(self):
        curve = summarize_curve(self.TRIALS, FitNonConvergent(reason="x"))

        np.testing.assert_allclose(curve['sample_sizes'], [1, 2])
        np.testing.assert_allclose(curve['mean'], [0.3, 0.5])
        np.testing.assert_allclose(curve['sd'], [np.std([0.2, 0.4], ddof=1), 0.0])

    def test_summary_with_fit_uses_predictions(self):
        curve = summarize_curve(self.TRIALS, FitSuccess(a=0.5, b=1.0))
        np.testing.assert_allclose(curve['mean'], [0.25, 1.0 / 3.0])

    def test_chart_saved(self, tmp_path):
        result = RepresentativenessResult(sample_size=2, percent=50.0, mode=MODE_INCLUSION, asymptote=0.5)
        output = str(tmp_path / "chart.png")

        assert plot_inclusion_curve(self.TRIALS, result, output_file=output) == output
        assert os.path.getsize(output) > 0

    def test_no_trials_no_chart(self):
        result = RepresentativenessResult(sample_size=1, percent=0.0, mode=MODE_INCLUSION, asymptote=0.0)
        assert plot_inclusion_curve((), result, output_file="unused.png") is None


class TestCli:
    def _tracking_file(self, tmp_path):
        lines = ["ID,X,Y"]
        for ind in make_individuals(5, n_fixes=12, seed=6):
            lines.extend(f"{ind.id},{x:.2f},{y:.2f}" for x, y in zip(ind.x, ind.y))
        path = tmp_path / "tracks.csv"
        path.write_text("\n".join(lines) + "\n")
        return str(path)

    def test_success(self, tmp_path, monkeypatch, capsys):
        tracking = self._tracking_file(tmp_path)
        chart = str(tmp_path / "chart.png")
        boot = str(tmp_path / "boot.csv")
        monkeypatch.setattr(sys, 'argv', [
            'repassess', tracking, '--iterations', '2', '--scale', '1', '--res', '0.5',
            '--ncores', '1', '--seed', '5', '--boot-table', '--boot-table-path', boot,
            '--output', chart,
        ])

        repassess_cli.main()
        response = json.loads(capsys.readouterr().out)

        assert response['success'] is True
        assert response['bootstrap'] == {'individuals': 5, 'iterations': 2, 'trials': 8, 'workers': 1}
        assert response['results']['type'] in (MODE_ASYMPTOTE, MODE_ASYMPTOTE_ADJ, MODE_INCLUSION)
        assert response['files'] == {'boot_table': boot, 'chart': chart}
        assert 'projection' not in response
        assert os.path.exists(chart)
        # Two iterations is always flagged
        assert 'few_iterations' in response['caution']

    def test_missing_file(self, tmp_path, monkeypatch, capsys):
        missing = str(tmp_path / "nope.csv")
        monkeypatch.setattr(sys, 'argv', ['repassess', missing])

        with pytest.raises(SystemExit) as exc:
            repassess_cli.main()

        assert exc.value.code == 1
        response = json.loads(capsys.readouterr().out)
        assert response == {'success': False, 'error': f"File not found: {missing}"}

    def test_validation_error(self, tmp_path, monkeypatch, capsys):
        path = tmp_path / "bad.csv"
        path.write_text("Name,X,Y\nA,1,2\n")
        monkeypatch.setattr(sys, 'argv', ['repassess', str(path), '--ncores', '1'])

        with pytest.raises(SystemExit):
            repassess_cli.main()

        response = json.loads(capsys.readouterr().out)
        assert response['success'] is False
        assert "ID field does not exist" in response['error']
