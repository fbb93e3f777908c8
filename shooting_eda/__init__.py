"""
NYPD Shooting Incident EDA
--------------------------
This package implements the exploratory analysis of the NYPD Shooting
Incident (Historic) dataset: temporal and spatial profiles, record cleaning
and a logistic model of the target year against perpetrator attributes.

Module Hierarchy:
- `ingest`: Fetches the raw CSV and normalizes it into the incident table.
- `features`: Spatial filtering, grouped aggregates and categorical cleaning.
- `models`: Binomial GLM of the target-year indicator.
- `exploration`: Plots and CSV tables for the report.
- `utils`: In-memory DuckDB connectivity.
- `pipeline`: Stage runner that ties the layers together.

Pipeline:
1. Loader (fetch + schema contract + date/time parsing)
2. Spatial Filter / Aggregator (descriptive layer)
3. Cleaner -> Modeler (inferential layer)
"""
