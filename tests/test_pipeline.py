"""
Tests for the stage runner, the full pipeline and the report writer.
"""

from unittest.mock import patch

import pytest

from shooting_eda.errors import DataUnavailable, ModelFitError, PipelineError
from shooting_eda.exploration.shooting_analysis import ShootingAnalyzer
from shooting_eda.pipeline import run_pipeline, run_stage

SUMMER_MODELS = {
    "summer": dict(year_range=(2018, 2020), month_range=(6, 8), target_year=2020),
}


class TestRunStage:

    def test_returns_result(self):
        assert run_stage("adder", lambda a, b: a + b, 2, b=3) == 5

    def test_tags_stage_name(self):
        def failing():
            raise ModelFitError("rank-deficient")

        with pytest.raises(ModelFitError) as exc:
            run_stage("modeler", failing)
        assert exc.value.stage == "modeler"
        assert str(exc.value) == "[modeler] rank-deficient"

    def test_keeps_existing_stage(self):
        def failing():
            raise DataUnavailable("timeout", stage="loader")

        with pytest.raises(PipelineError) as exc:
            run_stage("outer", failing)
        assert exc.value.stage == "loader"

    def test_other_errors_are_tagged_with_stage(self):
        def failing():
            raise KeyError("boro")

        with pytest.raises(PipelineError) as exc:
            run_stage("aggregator", failing)
        assert exc.value.stage == "aggregator"
        assert "KeyError" in exc.value.message
        assert isinstance(exc.value.__cause__, KeyError)


class TestRunPipeline:

    def test_all_outputs(self, shooting_csv):
        out = run_pipeline(str(shooting_csv), target_year=2020, models=SUMMER_MODELS)
        assert len(out.incidents) == 8
        assert len(out.spatial) == 7
        assert out.daily["daily_count"].sum() == 8
        assert out.seasonal["month_of_year"].tolist() == [6, 7, 8]
        assert out.hourly["hour"].tolist() == [21]
        assert out.boroughs["incidents"].sum() == 8
        assert out.cleaning.dropped_rows == 2
        assert out.quality.loc[0, "total_records"] == 8
        assert out.ok
        assert len(out.models["summer"].terms) == 4

    def test_model_failure_is_isolated(self, shooting_csv):
        models = dict(SUMMER_MODELS)
        models["too_early"] = dict(year_range=(2006, 2010), month_range=(6, 8), target_year=2020)
        out = run_pipeline(str(shooting_csv), models=models)
        assert "summer" in out.models
        assert not out.ok
        error = out.model_errors["too_early"]
        assert isinstance(error, ModelFitError)
        assert error.stage == "modeler:too_early"

    def test_invalid_window_is_isolated(self, shooting_csv):
        models = dict(SUMMER_MODELS)
        models["backwards"] = dict(year_range=(2018, 2020), month_range=(8, 6), target_year=2020)
        out = run_pipeline(str(shooting_csv), models=models)
        assert len(out.models["summer"].terms) == 4
        error = out.model_errors["backwards"]
        assert isinstance(error, ModelFitError)
        assert error.stage == "modeler:backwards"
        assert "reversed" in error.message

    def test_loader_failure_names_stage(self, tmp_path):
        with pytest.raises(DataUnavailable) as exc:
            run_pipeline(str(tmp_path / "missing.csv"), models={})
        assert exc.value.stage == "loader"


class TestShootingAnalyzer:

    def test_writes_report(self, shooting_csv, tmp_path):
        out = run_pipeline(str(shooting_csv), models=SUMMER_MODELS)
        analyzer = ShootingAnalyzer(tmp_path / "report", basemap=False)
        paths = analyzer.write_report(out)
        names = sorted(p.name for p in paths)
        assert names == [
            "model_summer.csv",
            "plot_borough_counts.png",
            "plot_daily_trend.png",
            "plot_hourly_profile.png",
            "plot_monthly_trend.png",
            "plot_seasonal_profile.png",
            "plot_spatial_distribution.png",
        ]
        assert all(p.exists() and p.stat().st_size > 0 for p in paths)

    def test_model_table_has_odds_ratios(self, shooting_csv, tmp_path):
        out = run_pipeline(str(shooting_csv), models=SUMMER_MODELS)
        path = ShootingAnalyzer(tmp_path, basemap=False).write_model_table("summer", out.models["summer"])
        header = path.read_text().splitlines()[0]
        assert header == "term,estimate,std_error,z_value,p_value,odds_ratio"


class TestMain:

    def test_success(self, shooting_csv, monkeypatch):
        import run_analysis
        from shooting_eda.config import Config

        monkeypatch.setattr(Config, "MODEL_YEAR_RANGE", (2018, 2020))
        monkeypatch.setattr(Config, "PRECOVID_YEAR_RANGE", (2018, 2020))
        monkeypatch.setattr(Config, "MODEL_MONTH_RANGE", (6, 8))
        monkeypatch.setattr(Config, "TARGET_YEAR", 2020)
        assert run_analysis.main(["--source", str(shooting_csv), "--no-plots"]) == 0

    def test_reports_failed_stage(self, tmp_path, capsys):
        import run_analysis

        assert run_analysis.main(["--source", str(tmp_path / "missing.csv"), "--no-plots"]) == 1
        assert "Stage 'loader' failed" in capsys.readouterr().out

    def test_reports_stage_of_unexpected_error(self, shooting_csv, capsys):
        import run_analysis

        with patch("shooting_eda.pipeline.borough_summary", side_effect=KeyError("boro")):
            status = run_analysis.main(["--source", str(shooting_csv), "--no-plots"])
        assert status == 1
        assert "Stage 'aggregator' failed: KeyError" in capsys.readouterr().out

    def test_reports_failed_model_window(self, shooting_csv, monkeypatch, capsys):
        import run_analysis
        from shooting_eda.config import Config

        monkeypatch.setattr(Config, "MODEL_MONTH_RANGE", (8, 6))
        assert run_analysis.main(["--source", str(shooting_csv), "--no-plots"]) == 1
        out = capsys.readouterr().out
        assert "Stage 'modeler:all_years' failed" in out
        assert "Stage 'modeler:pre_covid' failed" in out
