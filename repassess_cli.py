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
RepAssess CLI entry point.

Estimates how representative a tracked sample of animals is of the
population's space use, from a delimited relocation file.
"""
import json
import os
import sys
import argparse
import logging

from core.assessment import assess_records
from core.errors import InputValidationError, ShapeMismatchError
from core.visualization import plot_inclusion_curve
from core.warnings import compute_warnings
from parsers.tracking_csv import read_tracking_csv
import config
from locales.strings import ERRORS

logging.basicConfig(
    level=logging.ERROR,
    format='%(levelname)s: %(message)s',
    stream=sys.stderr
)
logger = logging.getLogger('repassess_cli')


def format_json_response(assessment, chart_path=None, warnings_dict=None, cautions_dict=None):
    """
    Format JSON response for CLI output.

    Args:
        assessment: dict returned by assess_records
        chart_path: path of the saved chart or None
        warnings_dict: warnings
        cautions_dict: cautions

    Returns:
        dict with JSON response
    """
    result = assessment['result']

    response = {
        "success": True,
        "results": result.to_dict(),
        "message": result.message,
        "bootstrap": {
            "individuals": assessment.get('n_individuals'),
            "iterations": assessment.get('iterations'),
            "trials": len(assessment.get('trials', ())),
            "workers": assessment.get('workers'),
        },
        "files": {}
    }

    if assessment.get('projection'):
        response["projection"] = {
            "proj": "laea",
            "lat_0": assessment['projection']['lat_0'],
            "lon_0": assessment['projection']['lon_0'],
            "crs": assessment['projection']['crs'],
        }

    if assessment.get('boot_table_path'):
        response["files"]["boot_table"] = assessment['boot_table_path']

    if chart_path:
        response["files"]["chart"] = chart_path

    if warnings_dict:
        response["warning"] = warnings_dict

    if cautions_dict:
        response["caution"] = cautions_dict

    return response


def _error_exit(message):
    error_response = {
        "success": False,
        "error": message
    }
    print(json.dumps(error_response, ensure_ascii=False, indent=2))
    sys.exit(1)


def main():
    """CLI entry point."""
    parser = argparse.ArgumentParser(description='Tracking sample representativeness assessment')
    parser.add_argument('tracking_file', help='Path to delimited relocation file (ID, Latitude/Longitude or X/Y, DateTime)')
    parser.add_argument('--iterations', type=int, help='Sub-sampling repeats per sample size',
                        default=config.ITERATIONS_DEFAULT)
    parser.add_argument('--scale', type=float, help='Kernel smoothing parameter h in km (default: reference bandwidth)',
                        default=None)
    parser.add_argument('--res', type=float, help='Grid cell size in km (default: ~500-cell grid)', default=None)
    parser.add_argument('--boot-table', dest='boot_table', action='store_true',
                        help='Save the raw bootstrap table as CSV')
    parser.add_argument('--boot-table-path', dest='boot_table_path', help='Bootstrap table path',
                        default=config.BOOT_TABLE_FILENAME)
    parser.add_argument('--ncores', type=int, help='Worker processes (default: half of available CPUs)', default=None)
    parser.add_argument('--seed', type=int, help='Random seed for a reproducible run', default=None)
    parser.add_argument('--output', help='Output path for the inclusion chart', default=None)
    parser.add_argument('--verbose', action='store_true', help='Log progress to stderr')
    args = parser.parse_args()

    if args.verbose:
        logging.getLogger().setLevel(logging.INFO)

    try:
        if not os.path.exists(args.tracking_file):
            _error_exit(ERRORS['file_not_found'].format(file_path=args.tracking_file))

        records = read_tracking_csv(args.tracking_file)

        assessment = assess_records(
            records,
            iterations=args.iterations,
            scale=args.scale,
            resolution=args.res,
            boot_table=args.boot_table,
            boot_table_path=args.boot_table_path,
            workers=args.ncores,
            seed=args.seed,
        )

        warnings_dict, cautions_dict = compute_warnings(assessment)

        chart_path = None
        if args.output:
            chart_path = plot_inclusion_curve(
                assessment['trials'],
                assessment['result'],
                fit=assessment.get('fit'),
                output_file=args.output
            )

        response = format_json_response(assessment, chart_path, warnings_dict, cautions_dict)
        print(json.dumps(response, ensure_ascii=False, indent=2))

    except (InputValidationError, ShapeMismatchError) as e:
        _error_exit(str(e))
    except Exception as e:
        logger.error(f"Assessment failed: {e}")
        _error_exit(f"Error: {str(e)}")


if __name__ == "__main__":
    main()
