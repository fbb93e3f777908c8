"""
MISSION: The Spatial Layer.
Turns the Lon_Lat WKT strings into point geometries (WGS84) for mapping.
"""
import logging
import re

import geopandas as gpd
import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)

CRS = "EPSG:4326"

_NUM = r"([-+]?\d+(?:\.\d+)?(?:[eE][-+]?\d+)?)"
POINT_PATTERN = rf"^\s*POINT\s*\(\s*{_NUM}\s+{_NUM}\s*\)\s*$"


def parse_points(values):
    """Extracts (longitude, latitude) floats from WKT point strings; NaN when malformed."""
    text = values.where(values.notna(), "").astype(str)
    coords = text.str.extract(POINT_PATTERN, flags=re.IGNORECASE)
    lon = pd.to_numeric(coords[0], errors="coerce")
    lat = pd.to_numeric(coords[1], errors="coerce")
    return lon, lat


def spatial_filter(table):
    """Returns the incidents with a usable location as a GeoDataFrame in EPSG:4326."""
    lon, lat = parse_points(table["lon_lat"])

    # Fall back to the separate coordinate columns when the WKT string is unusable
    if "longitude" in table.columns and "latitude" in table.columns:
        lon = lon.fillna(pd.to_numeric(table["longitude"], errors="coerce"))
        lat = lat.fillna(pd.to_numeric(table["latitude"], errors="coerce"))

    lon_v = lon.to_numpy(dtype=float)
    lat_v = lat.to_numpy(dtype=float)
    valid = (
        np.isfinite(lon_v) & np.isfinite(lat_v)
        & (np.abs(lon_v) <= 180) & (np.abs(lat_v) <= 90)
    )

    dropped = int((~valid).sum())
    if dropped:
        logger.info("Spatial filter: %d of %d incidents have no usable location", dropped, len(table))

    df = table.loc[valid].copy()
    df["longitude"] = lon_v[valid]
    df["latitude"] = lat_v[valid]
    df = df.reset_index(drop=True)
    return gpd.GeoDataFrame(
        df, geometry=gpd.points_from_xy(df["longitude"], df["latitude"]), crs=CRS
    )
