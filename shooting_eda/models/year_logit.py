"""
MISSION: The Inferential Layer.
Binomial GLM of "incident happened in the target year" against the
perpetrator's age group, sex and race, over a window of years and months.
"""
import logging
import warnings
from dataclasses import dataclass, field

import numpy as np
import pandas as pd
import statsmodels.api as sm
from statsmodels.tools.sm_exceptions import PerfectSeparationError, PerfectSeparationWarning

from shooting_eda.config import Config
from shooting_eda.errors import ModelFitError

logger = logging.getLogger(__name__)

PREDICTORS = ("perp_age_group", "perp_sex", "perp_race")
RESPONSE = "is_target_year"


@dataclass
class ModelResult:
    coefficients: pd.DataFrame
    reference_levels: dict
    n_obs: int
    year_range: tuple
    month_range: tuple
    target_year: int
    converged: bool = True
    aic: float = field(default=float("nan"))

    @property
    def terms(self):
        return list(self.coefficients.index)

    def odds_ratios(self):
        return np.exp(self.coefficients["estimate"]).rename("odds_ratio")

    def summary_frame(self):
        """Coefficient table with odds ratios, ready for CSV output."""
        out = self.coefficients.copy()
        out["odds_ratio"] = self.odds_ratios()
        return out


def _check_range(name, bounds, lo=None, hi=None):
    start, end = bounds
    if start > end:
        raise ModelFitError(f"{name} is reversed: {bounds}")
    if lo is not None and (start < lo or end > hi):
        raise ModelFitError(f"{name} must lie within {lo}..{hi}: {bounds}")
    return int(start), int(end)


def build_model_input(table, year_range, month_range, target_year):
    """Restricts the cleaned table to the window and recomputes the indicator."""
    y0, y1 = _check_range("year_range", year_range)
    m0, m1 = _check_range("month_range", month_range, 1, 12)

    dates = table["occur_date"]
    window = dates.dt.year.between(y0, y1) & dates.dt.month.between(m0, m1)
    df = table.loc[window, list(PREDICTORS)].copy()
    df[RESPONSE] = (dates[window].dt.year == target_year).astype(int)
    return df.reset_index(drop=True)


def encode_predictors(df):
    """
    Dummy-encodes the predictors. Levels absent from the window are dropped
    first, so each factor's reference is its first observed category.
    """
    encoded = []
    references = {}
    for col in PREDICTORS:
        values = df[col]
        if not isinstance(values.dtype, pd.CategoricalDtype):
            values = values.astype("category")
        declared = values.cat.categories[0] if len(values.cat.categories) else None
        values = values.cat.remove_unused_categories()
        levels = list(values.cat.categories)
        if len(levels) < 2:
            raise ModelFitError(
                f"Predictor '{col}' has zero variance (only level: {levels[0] if levels else 'none'})"
            )
        if levels[0] != declared:
            logger.warning(
                "Reference level for '%s' is '%s': first allowed level '%s' is absent from the window",
                col, levels[0], declared,
            )
        references[col] = levels[0]
        encoded.append(pd.get_dummies(values, prefix=col, prefix_sep="=", drop_first=True, dtype=float))

    X = sm.add_constant(pd.concat(encoded, axis=1), has_constant="add")
    return X, references


def fit(table, year_range=None, month_range=None, target_year=None):
    """Fits the target-year logistic model and returns its coefficient table."""
    year_range = year_range or Config.MODEL_YEAR_RANGE
    month_range = month_range or Config.MODEL_MONTH_RANGE
    target_year = target_year if target_year is not None else Config.TARGET_YEAR

    df = build_model_input(table, year_range, month_range, target_year)
    if df.empty:
        raise ModelFitError(f"No incidents in years {year_range}, months {month_range}")

    y = df[RESPONSE]
    if y.nunique() < 2:
        raise ModelFitError(
            f"Response has a single class: every incident is "
            f"{'in' if y.iloc[0] else 'outside'} {target_year}"
        )

    X, references = encode_predictors(df)
    rank = np.linalg.matrix_rank(X.to_numpy())
    if rank < X.shape[1]:
        raise ModelFitError(f"Design matrix is rank-deficient (rank {rank} < {X.shape[1]} columns)")

    logger.info(
        "Fitting binomial GLM: %d incidents, %d terms, years %s, months %s, target %d",
        len(df), X.shape[1], year_range, month_range, target_year,
    )
    with warnings.catch_warnings():
        warnings.simplefilter("error", PerfectSeparationWarning)
        try:
            res = sm.GLM(y, X, family=sm.families.Binomial()).fit()
        except (PerfectSeparationError, PerfectSeparationWarning) as e:
            raise ModelFitError(f"Perfect separation in the model input: {e}") from e
        except np.linalg.LinAlgError as e:
            raise ModelFitError(f"Solver failed: {e}") from e

    converged = bool(getattr(res, "converged", True))
    if not converged:
        raise ModelFitError("IRLS did not converge")
    if not (np.all(np.isfinite(res.params)) and np.all(np.isfinite(res.bse))):
        raise ModelFitError("Fit produced non-finite coefficients or standard errors")

    coefficients = pd.DataFrame({
        "estimate": res.params,
        "std_error": res.bse,
        "z_value": res.tvalues,
        "p_value": res.pvalues,
    })
    coefficients.index.name = "term"
    return ModelResult(
        coefficients=coefficients,
        reference_levels=references,
        n_obs=int(res.nobs),
        year_range=tuple(year_range),
        month_range=tuple(month_range),
        target_year=target_year,
        converged=converged,
        aic=float(res.aic),
    )
