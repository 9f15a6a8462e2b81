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
Tracking file reader - delimited relocation files (CSV/TSV).

Expected columns: ID plus either X/Y (projected metres) or
Latitude/Longitude, optionally DateTime (ISO 8601). Other columns are
ignored.
"""
import csv
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

import config
from core.errors import InputValidationError
from locales.strings import ERRORS

logger = logging.getLogger('tracking_csv')

DATETIME_FORMATS = (
    '%Y-%m-%d %H:%M:%S',
    '%Y-%m-%d %H:%M',
    '%d/%m/%Y %H:%M:%S',
    '%d/%m/%Y %H:%M',
    '%Y-%m-%d',
)


def parse_datetime(value: str) -> Optional[datetime]:
    """Parses ISO 8601 or one of DATETIME_FORMATS; None for empty values."""
    value = value.strip()
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace('Z', '+00:00'))
    except ValueError:
        pass
    for fmt in DATETIME_FORMATS:
        try:
            return datetime.strptime(value, fmt)
        except ValueError:
            continue
    raise ValueError(f"Unrecognised date/time '{value}'")


def _parse_float(value: str, field: str, row: int) -> Optional[float]:
    value = value.strip()
    if not value or value.upper() in ('NA', 'NAN'):
        return None
    try:
        return float(value)
    except ValueError:
        raise InputValidationError(
            ERRORS['invalid_value'].format(field=field, value=value, row=row)
        )


def detect_delimiter(sample: str) -> str:
    """Guesses the delimiter from the header line."""
    try:
        return csv.Sniffer().sniff(sample, delimiters=',;\t').delimiter
    except csv.Error:
        return ','


def read_tracking_csv(file_path: str) -> List[Dict[str, Any]]:
    """
    Reads relocation records from a delimited file.

    Args:
        file_path: path to the tracking file

    Returns:
        list of dicts: {'ID': str, 'Latitude': float|None, 'Longitude': float|None,
                        'X': float|None, 'Y': float|None, 'DateTime': datetime|None}
    """
    field_id = config.FIELD_ID
    numeric_fields = (config.FIELD_LATITUDE, config.FIELD_LONGITUDE, config.FIELD_X, config.FIELD_Y)
    field_datetime = config.FIELD_DATETIME

    with open(file_path, 'r', newline='') as f:
        sample = f.readline()
        if not sample.strip():
            raise ValueError(f"File {file_path} is empty")
        f.seek(0)
        reader = csv.DictReader(f, delimiter=detect_delimiter(sample))
        header = [h.strip() for h in (reader.fieldnames or [])]
        reader.fieldnames = header

        if field_id not in header:
            raise InputValidationError(ERRORS['missing_field'].format(field=field_id))

        records = []
        for row_number, row in enumerate(reader, start=1):
            record = {field_id: (row.get(field_id) or '').strip() or None}
            for field in numeric_fields:
                if field in header:
                    record[field] = _parse_float(row.get(field) or '', field, row_number)
            if field_datetime in header:
                raw = row.get(field_datetime) or ''
                try:
                    record[field_datetime] = parse_datetime(raw)
                except ValueError:
                    raise InputValidationError(
                        ERRORS['invalid_value'].format(field=field_datetime, value=raw, row=row_number)
                    )
            records.append(record)

    logger.info(f"Read {len(records)} relocations from {file_path}")
    return records
