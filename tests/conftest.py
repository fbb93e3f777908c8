"""
Shooting EDA - Pytest Configuration and Fixtures

Shared fixtures for all tests:
- Raw export rows in the NYPD column layout
- Normalized incident tables built through the processor
- The six-incident summer table used by the model tests
"""

import matplotlib

matplotlib.use("Agg")

import pandas as pd
import pytest

from shooting_eda.ingest.processor import IncidentProcessor

DEFAULT_RAW = {
    "OCCUR_DATE": "07/01/2019",
    "OCCUR_TIME": "21:30:00",
    "BORO": "BROOKLYN",
    "STATISTICAL_MURDER_FLAG": "false",
    "PERP_AGE_GROUP": "25-44",
    "PERP_SEX": "M",
    "PERP_RACE": "BLACK",
    "VIC_AGE_GROUP": "25-44",
    "VIC_SEX": "M",
    "VIC_RACE": "BLACK",
    "Latitude": "40.6782",
    "Longitude": "-73.9442",
    "Lon_Lat": "POINT (-73.9442 40.6782)",
}


# =============================================================================
# Table Builders
# =============================================================================


@pytest.fixture
def make_raw():
    """Factory for raw export frames; each row overrides DEFAULT_RAW."""

    def _make(rows):
        records = []
        for i, row in enumerate(rows):
            record = {"INCIDENT_KEY": str(200000 + i), **DEFAULT_RAW}
            record.update(row)
            records.append(record)
        return pd.DataFrame(records)

    return _make


@pytest.fixture
def make_incidents(make_raw):
    """Factory for normalized incident tables."""

    def _make(rows):
        return IncidentProcessor().process(make_raw(rows))

    return _make


@pytest.fixture
def dated_incidents(make_incidents):
    """Factory for incident tables that only vary by date (ISO strings)."""

    def _make(dates):
        rows = [{"OCCUR_DATE": pd.Timestamp(d).strftime("%m/%d/%Y")} for d in dates]
        return make_incidents(rows)

    return _make


# =============================================================================
# Model Fixtures
# =============================================================================


@pytest.fixture
def summer_rows():
    """
    Six incidents, June-August 2018-2020. The 2020 and non-2020 groups have the
    same number of each non-reference level, so the logistic MLE exists.
    """
    return [
        {"OCCUR_DATE": "06/15/2020", "PERP_AGE_GROUP": "25-44", "PERP_SEX": "M", "PERP_RACE": "BLACK"},
        {"OCCUR_DATE": "07/04/2020", "PERP_AGE_GROUP": "18-24", "PERP_SEX": "F", "PERP_RACE": "BLACK"},
        {"OCCUR_DATE": "08/20/2020", "PERP_AGE_GROUP": "18-24", "PERP_SEX": "M", "PERP_RACE": "WHITE HISPANIC"},
        {"OCCUR_DATE": "06/10/2018", "PERP_AGE_GROUP": "25-44", "PERP_SEX": "F", "PERP_RACE": "BLACK"},
        {"OCCUR_DATE": "07/21/2019", "PERP_AGE_GROUP": "18-24", "PERP_SEX": "M", "PERP_RACE": "WHITE HISPANIC"},
        {"OCCUR_DATE": "08/05/2018", "PERP_AGE_GROUP": "18-24", "PERP_SEX": "M", "PERP_RACE": "BLACK"},
    ]


@pytest.fixture
def summer_incidents(make_incidents, summer_rows):
    return make_incidents(summer_rows)


@pytest.fixture
def shooting_csv(tmp_path, make_raw, summer_rows):
    """Summer table plus rows the cleaner and spatial filter must drop, on disk."""
    extra = [
        {"OCCUR_DATE": "07/09/2019", "PERP_AGE_GROUP": "UNKNOWN", "BORO": "BRONX",
         "STATISTICAL_MURDER_FLAG": "true"},
        {"OCCUR_DATE": "07/10/2019", "PERP_SEX": None, "Lon_Lat": None,
         "Latitude": None, "Longitude": None, "BORO": "QUEENS"},
    ]
    path = tmp_path / "NYPD_Shooting_Incident_Data__Historic_.csv"
    make_raw(summer_rows + extra).to_csv(path, index=False)
    return path
