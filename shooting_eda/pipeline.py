"""
Stage runner for the shooting report.

Loader -> {Spatial Filter, Aggregator, Cleaner -> Modeler}. Every fatal error
leaves this module tagged with the stage that raised it.
"""
import logging
from dataclasses import dataclass, field

import geopandas as gpd
import pandas as pd

from shooting_eda.config import Config
from shooting_eda.errors import ModelFitError, PipelineError
from shooting_eda.features.aggregate import GroupKey, aggregate, borough_summary, check_data_quality
from shooting_eda.features.clean import CleaningSummary, clean_with_summary
from shooting_eda.features.spatial import spatial_filter
from shooting_eda.ingest.processor import load_incidents
from shooting_eda.models.year_logit import fit

logger = logging.getLogger(__name__)


def run_stage(name, func, *args, **kwargs):
    """
    Runs one stage, labelling any PipelineError with the stage name. Any other
    exception is re-raised as a PipelineError for that stage, chained to the
    original.
    """
    logger.info("Stage '%s' started", name)
    try:
        result = func(*args, **kwargs)
    except PipelineError as e:
        if e.stage is None:
            e.stage = name
        logger.error("Stage '%s' failed: %s", name, e.message)
        raise
    except Exception as e:
        logger.exception("Stage '%s' failed unexpectedly", name)
        raise PipelineError(f"{type(e).__name__}: {e}", stage=name) from e
    logger.info("Stage '%s' finished", name)
    return result


def model_configurations(target_year=None):
    """The two comparisons reported: every year vs the target, recent years vs the target."""
    target_year = target_year if target_year is not None else Config.TARGET_YEAR
    return {
        "all_years": dict(year_range=Config.MODEL_YEAR_RANGE,
                          month_range=Config.MODEL_MONTH_RANGE, target_year=target_year),
        "pre_covid": dict(year_range=Config.PRECOVID_YEAR_RANGE,
                          month_range=Config.MODEL_MONTH_RANGE, target_year=target_year),
    }


@dataclass
class PipelineOutputs:
    incidents: pd.DataFrame
    daily: pd.DataFrame
    monthly: pd.DataFrame
    seasonal: pd.DataFrame
    hourly: pd.DataFrame
    spatial: gpd.GeoDataFrame
    boroughs: pd.DataFrame
    quality: pd.DataFrame
    cleaned: pd.DataFrame
    cleaning: CleaningSummary
    models: dict = field(default_factory=dict)
    model_errors: dict = field(default_factory=dict)

    @property
    def ok(self):
        return not self.model_errors


def run_pipeline(source=None, target_year=None, models=None, timeout=None):
    """
    Runs every stage over one source. Loader/Aggregator/Cleaner failures abort
    the run; a ModelFitError only marks that model as failed.
    """
    source = source or Config.NYPD_SHOOTING_URL
    target_year = target_year if target_year is not None else Config.TARGET_YEAR
    models = models if models is not None else model_configurations(target_year)

    incidents = run_stage("loader", load_incidents, source, timeout=timeout)
    quality = run_stage("loader", check_data_quality, incidents)
    spatial = run_stage("spatial_filter", spatial_filter, incidents)

    daily = run_stage("aggregator", aggregate, incidents, GroupKey.DAY)
    monthly = run_stage("aggregator", aggregate, incidents, GroupKey.MONTH)
    seasonal = run_stage("aggregator", aggregate, incidents, GroupKey.MONTH_OF_YEAR)
    hourly = run_stage("aggregator", aggregate, incidents, GroupKey.HOUR)
    boroughs = run_stage("aggregator", borough_summary, incidents)

    cleaned, cleaning = run_stage("cleaner", clean_with_summary, incidents, target_year=target_year)

    outputs = PipelineOutputs(
        incidents=incidents, daily=daily, monthly=monthly, seasonal=seasonal,
        hourly=hourly, spatial=spatial, boroughs=boroughs, quality=quality,
        cleaned=cleaned, cleaning=cleaning,
    )
    for name, params in models.items():
        try:
            outputs.models[name] = run_stage(f"modeler:{name}", fit, cleaned, **params)
        except ModelFitError as e:
            outputs.model_errors[name] = e
    return outputs
