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
Relocation preprocessing.

Validates relocation records and turns them into ProjectedIndividual
objects. Records that already carry projected X/Y (metres) are used as is;
otherwise WGS84 Latitude/Longitude are projected with pyproj to a Lambert
azimuthal equal-area projection centred on the data centroid. Data spanning
the antimeridian get their central meridian from the median of the
longitudes unwrapped to 0..360.
"""
import logging
from collections import OrderedDict

import numpy as np
from pyproj import Transformer

try:
    from .. import config
    from ..locales.strings import ERRORS
except ImportError:
    import config
    from locales.strings import ERRORS

from .errors import InputValidationError
from .structures import ProjectedIndividual

logger = logging.getLogger(__name__)


def _has_value(record, field):
    value = record.get(field)
    if value is None:
        return False
    if isinstance(value, float) and np.isnan(value):
        return False
    return not (isinstance(value, str) and not value.strip())


def validate_records(records):
    """
    Checks the fields required for the assessment.

    Every record needs an ID. Unless every record carries projected X/Y,
    every record needs Latitude and Longitude.

    Returns:
        bool: True if the records are already projected
    """
    field_id = getattr(config, 'FIELD_ID', 'ID')
    field_lat = getattr(config, 'FIELD_LATITUDE', 'Latitude')
    field_lon = getattr(config, 'FIELD_LONGITUDE', 'Longitude')
    field_x = getattr(config, 'FIELD_X', 'X')
    field_y = getattr(config, 'FIELD_Y', 'Y')

    if not records:
        raise InputValidationError(ERRORS['missing_field'].format(field=field_id))

    for row, record in enumerate(records, start=1):
        if not _has_value(record, field_id):
            raise InputValidationError(ERRORS['missing_value'].format(field=field_id, row=row))

    projected = all(_has_value(r, field_x) and _has_value(r, field_y) for r in records)
    if projected:
        return True

    for field in (field_lat, field_lon):
        if not any(field in r for r in records):
            raise InputValidationError(ERRORS['missing_field'].format(field=field))
        for row, record in enumerate(records, start=1):
            if not _has_value(record, field):
                raise InputValidationError(ERRORS['missing_value'].format(field=field, row=row))

    return False


def spans_dateline(longitudes):
    """True if longitudes reach beyond +-170° on both sides."""
    limit = getattr(config, 'DATELINE_LON_LIMIT', 170.0)
    longitudes = np.asarray(longitudes, dtype=float)
    return bool(longitudes.min() < -limit and longitudes.max() > limit)


def projection_center(latitudes, longitudes):
    """
    Centre of the equal-area projection.

    Geographic centroid of the fixes (mean unit vector); the central
    meridian is replaced by the median unwrapped longitude when the data
    span the antimeridian.

    Returns:
        tuple: (lat_0, lon_0) in degrees
    """
    lat = np.radians(np.asarray(latitudes, dtype=float))
    lon = np.radians(np.asarray(longitudes, dtype=float))

    cx = np.mean(np.cos(lat) * np.cos(lon))
    cy = np.mean(np.cos(lat) * np.sin(lon))
    cz = np.mean(np.sin(lat))
    lat_0 = float(np.degrees(np.arctan2(cz, np.hypot(cx, cy))))
    lon_0 = float(np.degrees(np.arctan2(cy, cx)))

    if spans_dateline(longitudes):
        longs = np.asarray(longitudes, dtype=float)
        longs = np.where(longs < 0, longs + 360.0, longs)
        median = float(np.median(longs))
        lon_0 = median - 360.0 if median > 180.0 else median

    return lat_0, lon_0


def laea_crs(lat_0, lon_0):
    """proj4 definition of the WGS84 LAEA projection centred on (lat_0, lon_0)."""
    template = getattr(
        config, 'LAEA_PROJ_TEMPLATE',
        '+proj=laea +lat_0={lat_0} +lon_0={lon_0} +x_0=0 +y_0=0 +datum=WGS84 +units=m +no_defs'
    )
    return template.format(lat_0=lat_0, lon_0=lon_0)


def laea_forward(latitudes, longitudes, lat_0, lon_0):
    """
    Lambert azimuthal equal-area projection of WGS84 coordinates.

    Returns:
        tuple: (x, y) arrays in metres
    """
    source = getattr(config, 'GEOGRAPHIC_CRS', 'EPSG:4326')
    transformer = Transformer.from_crs(source, laea_crs(lat_0, lon_0), always_xy=True)
    x, y = transformer.transform(
        np.asarray(longitudes, dtype=float),
        np.asarray(latitudes, dtype=float)
    )
    return np.asarray(x, dtype=float), np.asarray(y, dtype=float)


def _sort_key(record, field_datetime):
    # Records without timestamps keep file order after those with timestamps
    if not _has_value(record, field_datetime):
        return (True, 0)
    return (False, record[field_datetime])


def prepare_individuals(records):
    """
    Validates records and groups them into ProjectedIndividual objects.

    Args:
        records: list of dicts with ID and X/Y or Latitude/Longitude,
                 optional DateTime (datetime) for ordering

    Returns:
        tuple: (individuals, projection) where individuals is a list of
               ProjectedIndividual in first-seen ID order and projection is
               {'lat_0': float, 'lon_0': float, 'crs': proj4 str} or None for
               projected input
    """
    field_id = getattr(config, 'FIELD_ID', 'ID')
    field_lat = getattr(config, 'FIELD_LATITUDE', 'Latitude')
    field_lon = getattr(config, 'FIELD_LONGITUDE', 'Longitude')
    field_x = getattr(config, 'FIELD_X', 'X')
    field_y = getattr(config, 'FIELD_Y', 'Y')
    field_datetime = getattr(config, 'FIELD_DATETIME', 'DateTime')

    projected = validate_records(records)

    grouped = OrderedDict()
    for record in records:
        grouped.setdefault(str(record[field_id]), []).append(record)

    has_times = any(_has_value(r, field_datetime) for r in records)
    if has_times:
        for fixes in grouped.values():
            fixes.sort(key=lambda r: _sort_key(r, field_datetime))

    projection = None
    if not projected:
        lats = [float(r[field_lat]) for r in records]
        lons = [float(r[field_lon]) for r in records]
        lat_0, lon_0 = projection_center(lats, lons)
        projection = {'lat_0': lat_0, 'lon_0': lon_0, 'crs': laea_crs(lat_0, lon_0)}
        logger.info(f"Projecting to LAEA centred on lat={lat_0:.4f}, lon={lon_0:.4f}")

    individuals = []
    for individual_id, fixes in grouped.items():
        if projected:
            x = np.array([float(r[field_x]) for r in fixes])
            y = np.array([float(r[field_y]) for r in fixes])
        else:
            x, y = laea_forward(
                [float(r[field_lat]) for r in fixes],
                [float(r[field_lon]) for r in fixes],
                projection['lat_0'], projection['lon_0']
            )
        individuals.append(ProjectedIndividual(id=individual_id, x=x, y=y))

    return individuals, projection
