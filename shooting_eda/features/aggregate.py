"""
MISSION: The Descriptive Layer.
Grouped incident statistics (daily trend, monthly trend, seasonality,
hour-of-day) computed as SQL over an in-memory DuckDB view.
"""
from enum import Enum

import pandas as pd

from shooting_eda.utils.db import DatabaseManager


class GroupKey(str, Enum):
    DAY = "day"
    MONTH = "month"
    MONTH_OF_YEAR = "month_of_year"
    HOUR = "hour"


# key -> (key column, value prefix, SQL key expression)
_GROUPINGS = {
    GroupKey.DAY: ("date", "daily", "day"),
    GroupKey.MONTH: ("month", "monthly", "date_trunc('month', day)"),
    GroupKey.MONTH_OF_YEAR: ("month_of_year", "seasonal", "month(day)"),
    GroupKey.HOUR: ("hour", "hourly", "hr"),
}


def bucket_columns(group_key):
    key_col, prefix, _ = _GROUPINGS[GroupKey(group_key)]
    return [key_col, f"{prefix}_count", f"{prefix}_mean", f"{prefix}_sd"]


def aggregate(table, group_key, year=None):
    """
    Counts incidents per day (per day and hour for `hour`) and summarizes those
    sub-counts per bucket: total, mean and sample standard deviation.

    Buckets are sorted ascending by key. A bucket built from a single sub-count
    has an undefined (NaN) standard deviation.
    """
    group_key = GroupKey(group_key)
    key_col, prefix, key_expr = _GROUPINGS[group_key]
    columns = bucket_columns(group_key)

    if table.empty:
        return pd.DataFrame(columns=columns)

    frame = pd.DataFrame({"occur_date": pd.to_datetime(table["occur_date"])})
    if group_key is GroupKey.HOUR:
        # Incidents without a time have no hour bucket
        timed = table["occur_time"].notna().to_numpy()
        frame = frame[timed].copy()
        if frame.empty:
            return pd.DataFrame(columns=columns)
        frame["hr"] = table["occur_time"][timed].map(lambda t: t.hour).astype("int64").to_numpy()

    sub_keys = "day, hr" if group_key is GroupKey.HOUR else "day"
    hour_col = ", hr" if group_key is GroupKey.HOUR else ""
    where = "WHERE year(occur_date) = ?" if year is not None else ""
    params = [int(year)] if year is not None else None

    query = f"""
        WITH sub_counts AS (
            SELECT
                CAST(occur_date AS DATE) AS day{hour_col},
                COUNT(*) AS n
            FROM incidents
            {where}
            GROUP BY {sub_keys}
        )
        SELECT
            {key_expr} AS {key_col},
            CAST(SUM(n) AS BIGINT) AS {prefix}_count,
            AVG(n) AS {prefix}_mean,
            STDDEV_SAMP(n) AS {prefix}_sd
        FROM sub_counts
        GROUP BY 1
        ORDER BY 1
    """
    with DatabaseManager() as db:
        db.register("incidents", frame)
        df = db.q_to_df(query, params)

    df[f"{prefix}_sd"] = df[f"{prefix}_sd"].astype(float)
    return df[columns]


def borough_summary(table):
    """Incident volume and murder share per borough."""
    columns = ["boro", "incidents", "murders", "murder_share"]
    if table.empty:
        return pd.DataFrame(columns=columns)

    frame = pd.DataFrame({
        "boro": table["boro"].fillna("UNKNOWN").astype(str),
        "murder": table["statistical_murder_flag"].astype(bool),
    })
    with DatabaseManager() as db:
        db.register("incidents", frame)
        return db.q_to_df("""
            SELECT
                boro,
                COUNT(*) AS incidents,
                CAST(SUM(CASE WHEN murder THEN 1 ELSE 0 END) AS BIGINT) AS murders,
                AVG(CASE WHEN murder THEN 1.0 ELSE 0.0 END) AS murder_share
            FROM incidents
            GROUP BY 1
            ORDER BY incidents DESC, boro
        """)


AUDITED_FIELDS = [
    "boro", "perp_age_group", "perp_sex", "perp_race",
    "vic_age_group", "vic_sex", "vic_race", "lon_lat",
]

_UNKNOWN_CODES = ("UNKNOWN", "U", "(null)", "")


def check_data_quality(table):
    """Audits missing/unknown values across the categorical and location fields."""
    fields = [f for f in AUDITED_FIELDS if f in table.columns]
    if table.empty:
        return pd.DataFrame([{"total_records": 0, **{f"pct_missing_{f}": float("nan") for f in fields}}])

    frame = pd.DataFrame({f: table[f].astype(object).where(table[f].notna(), None) for f in fields})
    codes = ", ".join(f"'{c}'" for c in _UNKNOWN_CODES)
    parts = [
        f"sum(CASE WHEN {f} IS NULL OR trim(CAST({f} AS VARCHAR)) IN ({codes}) "
        f"THEN 1 ELSE 0 END) * 100.0 / count(*) AS pct_missing_{f}"
        for f in fields
    ]
    with DatabaseManager() as db:
        db.register("incidents", frame)
        return db.q_to_df(f"SELECT count(*) AS total_records, {', '.join(parts)} FROM incidents")
