"""
Categorical cleaning for the model.

Rows are kept only when all six perpetrator/victim attributes fall inside the
allow-lists below; missing and UNKNOWN codes are therefore dropped by
construction rather than kept as their own level. The first entry of each
allow-list is the reference level used by the model.
"""
import logging
from collections import namedtuple

import pandas as pd

from shooting_eda.config import Config

logger = logging.getLogger(__name__)

AGE_GROUPS = ("<18", "18-24", "25-44", "45-64", "65+")
SEXES = ("M", "F")
RACES = (
    "BLACK",
    "WHITE HISPANIC",
    "BLACK HISPANIC",
    "WHITE",
    "ASIAN / PACIFIC ISLANDER",
    "AMERICAN INDIAN/ALASKAN NATIVE",
)

CATEGORICAL_FIELDS = {
    "perp_age_group": "age",
    "perp_sex": "sex",
    "perp_race": "race",
    "vic_age_group": "age",
    "vic_sex": "sex",
    "vic_race": "race",
}

CleaningSummary = namedtuple(
    "CleaningSummary", ["input_rows", "kept_rows", "dropped_rows", "dropped_fraction"]
)


def clean_with_summary(table, allowed_age_groups=AGE_GROUPS, allowed_races=RACES,
                       allowed_sexes=SEXES, target_year=None):
    """Same as `clean`, also returning the drop counts."""
    if target_year is None:
        target_year = Config.TARGET_YEAR
    allowed = {
        "age": list(allowed_age_groups),
        "sex": list(allowed_sexes),
        "race": list(allowed_races),
    }

    mask = pd.Series(True, index=table.index)
    for field, kind in CATEGORICAL_FIELDS.items():
        mask &= table[field].isin(allowed[kind])

    cleaned = table.loc[mask].copy().reset_index(drop=True)
    for field, kind in CATEGORICAL_FIELDS.items():
        cleaned[field] = pd.Categorical(cleaned[field].astype(object), categories=allowed[kind])
    cleaned["is_target_year"] = (cleaned["occur_date"].dt.year == target_year).astype(int)

    n_in = len(table)
    n_kept = len(cleaned)
    fraction = (n_in - n_kept) / n_in if n_in else 0.0
    summary = CleaningSummary(n_in, n_kept, n_in - n_kept, fraction)
    logger.info(
        "Cleaner dropped %d of %d incidents (%.1f%%) with categories outside the allow-lists",
        summary.dropped_rows, n_in, fraction * 100,
    )
    return cleaned, summary


def clean(table, allowed_age_groups=AGE_GROUPS, allowed_races=RACES,
          allowed_sexes=SEXES, target_year=None):
    cleaned, _ = clean_with_summary(
        table, allowed_age_groups, allowed_races, allowed_sexes, target_year
    )
    return cleaned
