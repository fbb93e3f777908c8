import logging

import pandas as pd

from shooting_eda.errors import DataUnavailable, SchemaMismatch
from shooting_eda.ingest.fetcher import ShootingFetcher

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = {
    "OCCUR_DATE": "occur_date",
    "OCCUR_TIME": "occur_time",
    "BORO": "boro",
    "PERP_AGE_GROUP": "perp_age_group",
    "PERP_SEX": "perp_sex",
    "PERP_RACE": "perp_race",
    "VIC_AGE_GROUP": "vic_age_group",
    "VIC_SEX": "vic_sex",
    "VIC_RACE": "vic_race",
    "STATISTICAL_MURDER_FLAG": "statistical_murder_flag",
    "Lon_Lat": "lon_lat",
}

OPTIONAL_COLUMNS = {
    "INCIDENT_KEY": "incident_key",
    "Latitude": "latitude",
    "Longitude": "longitude",
}

DATE_FORMAT = "%m/%d/%Y"
TIME_FORMAT = "%H:%M:%S"

_FLAG_VALUES = {"true": True, "false": False}


class IncidentProcessor:
    """Turns the raw export into the normalized incident table."""

    def process(self, raw):
        missing = set(REQUIRED_COLUMNS) - set(raw.columns)
        if missing:
            raise SchemaMismatch(missing)

        mapping = dict(REQUIRED_COLUMNS)
        mapping.update({k: v for k, v in OPTIONAL_COLUMNS.items() if k in raw.columns})
        df = raw[list(mapping)].rename(columns=mapping).copy()

        df["occur_date"] = self._parse_dates(df["occur_date"])
        n_missing = int(df["occur_date"].isna().sum())
        if n_missing:
            logger.info("Dropping %d incidents without an occurrence date", n_missing)
            df = df[df["occur_date"].notna()].copy()

        df["occur_time"] = self._parse_times(df["occur_time"])
        n_missing = int(df["occur_time"].isna().sum())
        if n_missing:
            logger.info("Dropping %d incidents without an occurrence time", n_missing)
            df = df[df["occur_time"].notna()].copy()

        df["statistical_murder_flag"] = self._parse_flags(df["statistical_murder_flag"])

        for col in ("latitude", "longitude"):
            if col in df.columns:
                df[col] = pd.to_numeric(df[col], errors="coerce")

        df = df.reset_index(drop=True)
        logger.info("Incident table ready: %d rows", len(df))
        return df

    def _parse_dates(self, values):
        try:
            return pd.to_datetime(values, format=DATE_FORMAT)
        except (ValueError, TypeError) as e:
            raise DataUnavailable(f"Malformed OCCUR_DATE value: {e}") from e

    def _parse_times(self, values):
        try:
            return pd.to_datetime(values, format=TIME_FORMAT).dt.time
        except (ValueError, TypeError) as e:
            raise DataUnavailable(f"Malformed OCCUR_TIME value: {e}") from e

    def _parse_flags(self, values):
        if values.dtype == bool:
            return values
        flags = values.astype(str).str.strip().str.lower().map(_FLAG_VALUES)
        if flags.isna().any():
            bad = sorted(values[flags.isna()].astype(str).unique())[:5]
            raise DataUnavailable(f"Unrecognized STATISTICAL_MURDER_FLAG values: {bad}")
        return flags.astype(bool)


def load_incidents(source, timeout=None):
    """Loader stage: fetch the source and return the incident table."""
    raw = ShootingFetcher(timeout=timeout).fetch(source)
    return IncidentProcessor().process(raw)
