import argparse
import logging
import sys

from dotenv import load_dotenv

from shooting_eda.config import Config
from shooting_eda.errors import PipelineError


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="NYPD shooting incident exploratory report.")
    parser.add_argument("--source", default=None,
                        help="CSV URL or local path (default: NYPD_SHOOTING_URL)")
    parser.add_argument("--target-year", type=int, default=None,
                        help="Year compared against the rest of the window (default: TARGET_YEAR)")
    parser.add_argument("--no-plots", action="store_true", help="Skip writing plots and tables")
    parser.add_argument("--no-basemap", action="store_true", help="Draw the map without web tiles")
    return parser.parse_args(argv)


def banner(title, purpose=None):
    print("\n" + "=" * 80)
    print(title)
    if purpose:
        print(f"Purpose: {purpose}")
    print("=" * 80)


def print_model(name, result):
    print(f"\n→ Model '{name}': years {result.year_range[0]}-{result.year_range[1]}, "
          f"months {result.month_range[0]}-{result.month_range[1]}, "
          f"target {result.target_year} (n={result.n_obs:,})")
    refs = ", ".join(f"{k}={v}" for k, v in result.reference_levels.items())
    print(f"   Reference levels: {refs}")
    print(result.summary_frame().round(4).to_string())


def main(argv=None):
    load_dotenv()
    args = parse_args(argv)

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        datefmt="%H:%M:%S",
    )

    from shooting_eda.exploration.shooting_analysis import ShootingAnalyzer
    from shooting_eda.pipeline import run_pipeline

    print("=" * 80)
    print("  NYPD SHOOTING INCIDENTS: EXPLORATORY REPORT")
    print("=" * 80)

    try:
        outputs = run_pipeline(source=args.source, target_year=args.target_year)
    except PipelineError as e:
        print(f"\nStage '{e.stage}' failed: {e.message}")
        return 1

    # --- LAYER 1: DESCRIPTIVE ---
    banner("LAYER 1: DESCRIPTIVE PROFILE",
           "Temporal trends, seasonality, hour-of-day and spatial distribution")
    print(f"\n→ {len(outputs.incidents):,} incidents loaded, "
          f"{len(outputs.spatial):,} with a usable location")
    print(f"→ {len(outputs.daily):,} days, {len(outputs.monthly):,} months covered")
    print("\n→ Data quality (% missing/unknown):")
    print(outputs.quality.round(2).T.to_string(header=False))
    print("\n→ Incidents by borough:")
    print(outputs.boroughs.to_string(index=False))

    # --- LAYER 2: INFERENTIAL ---
    banner("LAYER 2: TARGET-YEAR LOGISTIC MODELS",
           "Did the perpetrator profile shift in the target year?")
    c = outputs.cleaning
    print(f"\n→ Cleaner kept {c.kept_rows:,} of {c.input_rows:,} incidents "
          f"({c.dropped_fraction:.1%} dropped as unknown/disallowed)")
    for name, result in outputs.models.items():
        print_model(name, result)
    for name, error in outputs.model_errors.items():
        print(f"\nStage '{error.stage}' failed: {error.message}")

    if not args.no_plots:
        banner("REPORT OUTPUTS")
        Config.initialize_folders()
        analyzer = ShootingAnalyzer(Config.OUTPUT_DIR, basemap=not args.no_basemap)
        for path in analyzer.write_report(outputs):
            print(f"→ {path}")

    print("\n" + "=" * 80)
    print("  ANALYSIS COMPLETE" if outputs.ok else "  ANALYSIS COMPLETE WITH MODEL FAILURES")
    print(f"  All outputs saved to: {Config.OUTPUT_DIR}/")
    print("=" * 80)
    return 0 if outputs.ok else 1


if __name__ == "__main__":
    sys.exit(main())
