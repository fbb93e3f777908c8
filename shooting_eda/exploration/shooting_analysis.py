import logging
import os
from pathlib import Path

import contextily as cx
import matplotlib as mpl
import matplotlib.pyplot as plt
import matplotlib.ticker as ticker
import pandas as pd
import seaborn as sns

from shooting_eda.config import Config

# Set global formatting: No scientific notation
mpl.rcParams['axes.formatter.useoffset'] = False
mpl.rcParams['axes.formatter.limits'] = [-20, 20]

logger = logging.getLogger(__name__)

MONTH_LABELS = ['Jan', 'Feb', 'Mar', 'Apr', 'May', 'Jun', 'Jul', 'Aug', 'Sep', 'Oct', 'Nov', 'Dec']


class ShootingAnalyzer:
    """Renders the pipeline tables as the report's plots and CSV files."""

    def __init__(self, output_dir=None, basemap=True):
        self.output_dir = Path(output_dir or Config.OUTPUT_DIR)
        self.basemap = basemap
        os.makedirs(self.output_dir, exist_ok=True)

    def _save_plot(self, filename: str):
        """Internal helper to standardize how plots are saved."""
        if not filename.endswith(('.png', '.jpg', '.pdf')):
            filename += '.png'

        save_path = self.output_dir / filename
        plt.tight_layout()
        plt.savefig(save_path, dpi=150, bbox_inches='tight')
        plt.close()
        logger.info("Plot saved to %s", save_path)
        return save_path

    def plot_daily_trend(self, daily, filename="plot_daily_trend"):
        df = daily.copy()
        df['date'] = pd.to_datetime(df['date'])
        rolling = df.set_index('date')['daily_count'].rolling('30D').mean()

        plt.figure(figsize=(14, 6))
        sns.set_style("whitegrid")
        plt.plot(df['date'], df['daily_count'], color='lightgray', linewidth=0.6, label='Daily incidents')
        plt.plot(rolling.index, rolling.values, color='crimson', linewidth=2, label='30-day average')
        plt.title("NYC Shootings: Daily Incident Count", fontsize=15, fontweight='bold', loc='left')
        plt.ylabel("Incidents per Day")
        plt.xlabel("")
        plt.legend(loc='upper left')
        sns.despine()
        return self._save_plot(filename)

    def plot_monthly_trend(self, monthly, filename="plot_monthly_trend"):
        df = monthly.copy()
        df['month'] = pd.to_datetime(df['month'])

        plt.figure(figsize=(14, 6))
        plt.fill_between(df['month'], df['monthly_count'], color="skyblue", alpha=0.3)
        plt.plot(df['month'], df['monthly_count'], color="navy", marker='o', linewidth=2, markersize=3)
        plt.gca().yaxis.set_major_formatter(ticker.StrMethodFormatter('{x:,.0f}'))

        avg = df['monthly_count'].mean()
        plt.axhline(avg, color='red', linestyle='--', alpha=0.6, label=f'Avg: {int(avg):,}')
        plt.title("NYC Shootings: Monthly Incident Volume", fontsize=15, fontweight='bold', loc='left')
        plt.ylabel("Incidents per Month")
        plt.legend()
        plt.grid(axis='y', linestyle='--', alpha=0.3)
        sns.despine()
        return self._save_plot(filename)

    def plot_seasonal_profile(self, seasonal, filename="plot_seasonal_profile"):
        df = seasonal.copy()

        plt.figure(figsize=(12, 6))
        sns.set_style("whitegrid")
        plt.errorbar(df['month_of_year'], df['seasonal_mean'], yerr=df['seasonal_sd'].fillna(0),
                     color='crimson', marker='o', linewidth=3, markersize=8, capsize=4)
        plt.axvspan(6, 8, color='orange', alpha=0.1, label='Summer')
        plt.title("Seasonality: Mean Daily Shootings by Month (±1 SD)", fontsize=15, fontweight='bold')
        plt.xlabel("Month of the Year")
        plt.ylabel("Incidents per Day")
        plt.xticks(range(1, 13), MONTH_LABELS)
        plt.legend(loc='upper left')
        return self._save_plot(filename)

    def plot_hourly_profile(self, hourly, filename="plot_hourly_profile"):
        df = hourly.copy()

        plt.figure(figsize=(12, 6))
        plt.fill_between(df['hour'], df['hourly_count'], color="skyblue", alpha=0.3, label='Incident Volume')
        plt.plot(df['hour'], df['hourly_count'], color="slateblue", marker='o', linewidth=2)
        plt.axvspan(0, 4, color='navy', alpha=0.08, label='Late Night')
        plt.title("When Do Shootings Happen? (24-Hour Profile)", fontsize=15, fontweight='bold')
        plt.xlabel("Hour of Day")
        plt.ylabel("Total Incidents")
        plt.xticks(range(0, 24))
        plt.legend(loc='upper center')
        plt.grid(axis='y', linestyle='--', alpha=0.5)
        return self._save_plot(filename)

    def plot_borough_counts(self, boroughs, filename="plot_borough_counts"):
        df = boroughs.copy()

        plt.figure(figsize=(10, 6))
        sns.set_style("white")
        ax = sns.barplot(data=df, x='incidents', y='boro', hue='boro', palette='flare', legend=False)

        for i, p in enumerate(ax.patches[:len(df)]):
            share = df.iloc[i]['murder_share']
            ax.annotate(f"{int(p.get_width()):,} ({share:.1%} murders)",
                        (p.get_width(), p.get_y() + p.get_height() / 2),
                        xytext=(5, 0), textcoords='offset points', va='center', fontweight='bold')

        plt.title("Shooting Incidents by Borough", fontsize=15, fontweight='bold')
        plt.xlabel("Incidents")
        plt.ylabel("")
        sns.despine(left=True, bottom=False)
        return self._save_plot(filename)

    def plot_spatial_distribution(self, spatial, filename="plot_spatial_distribution"):
        gdf = spatial.to_crs(epsg=3857)

        fig, ax = plt.subplots(figsize=(12, 12))
        palette = dict(zip(sorted(gdf['boro'].dropna().unique()), sns.color_palette('Set1')))
        for boro, part in gdf.groupby('boro'):
            part.plot(ax=ax, markersize=2, alpha=0.4, color=palette.get(boro, 'gray'), label=boro)

        if self.basemap:
            try:
                cx.add_basemap(ax, source=cx.providers.CartoDB.Positron)
            except Exception as e:
                logger.warning("Could not add basemap: %s", e)

        ax.set_axis_off()
        ax.legend(loc='upper left', markerscale=6, frameon=True)
        plt.title("Spatial Distribution of Shooting Incidents", fontsize=16, fontweight='bold')
        return self._save_plot(filename)

    def write_model_table(self, name, result):
        save_path = self.output_dir / f"model_{name}.csv"
        result.summary_frame().to_csv(save_path)
        logger.info("Model table saved to %s", save_path)
        return save_path

    def write_report(self, outputs):
        """Writes every plot and table for a finished pipeline run."""
        paths = []
        if not outputs.daily.empty:
            paths.append(self.plot_daily_trend(outputs.daily))
            paths.append(self.plot_monthly_trend(outputs.monthly))
            paths.append(self.plot_seasonal_profile(outputs.seasonal))
            paths.append(self.plot_hourly_profile(outputs.hourly))
            paths.append(self.plot_borough_counts(outputs.boroughs))
        if not outputs.spatial.empty:
            paths.append(self.plot_spatial_distribution(outputs.spatial))
        for name, result in outputs.models.items():
            paths.append(self.write_model_table(name, result))
        return paths
