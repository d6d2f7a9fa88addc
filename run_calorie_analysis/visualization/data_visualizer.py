import logging
import os

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import seaborn as sns

logger = logging.getLogger(__name__)


class DataVisualizer:
    # Charts for the running log and the fitted models.
    # Rendering is presentation only; every number shown comes from the data and fit modules.

    def __init__(self, records, filtered_records=None, output_dir="analysis_outputs",
                 save_plots=True, show_plots=False, moving_pace_limit=10.0):
        self.df = records
        self.df_filtered = filtered_records if filtered_records is not None else records
        self.output_dir = output_dir
        self.save_plots = save_plots
        self.show_plots = show_plots
        self.moving_pace_limit = moving_pace_limit

        if save_plots:
            os.makedirs(output_dir, exist_ok=True)

        # Set plotting style
        plt.style.use('default')
        sns.set_palette("husl")

    def plot_distributions(self):
        # Distance, pace and calories spread across all runs
        logger.info("Creating distribution plots...")

        fig, axes = plt.subplots(1, 3, figsize=(18, 5))
        fig.suptitle('Run Distributions', fontsize=16)

        axes[0].hist(self.df['DISTANCE_MI'].dropna(), bins=40, alpha=0.7, edgecolor='black')
        axes[0].set_title('Distance (miles)')
        axes[0].set_xlabel('Miles')
        axes[0].set_ylabel('Runs')

        pace = self.df['MOVING_PACE'].replace([np.inf, -np.inf], np.nan).dropna()
        axes[1].hist(pace, bins=40, alpha=0.7, edgecolor='black')
        axes[1].set_title('Moving Pace (min/mile)')
        axes[1].set_xlabel('Minutes per mile')
        axes[1].axvline(x=self.moving_pace_limit, color='red', linestyle='--', label='Outlier limit')
        axes[1].legend()

        axes[2].hist(self.df['CALORIES'].dropna(), bins=40, alpha=0.7, edgecolor='black')
        axes[2].set_title('Calories')
        axes[2].set_xlabel('kcal')

        return self._finish(fig, 'distributions')

    def plot_time_of_day(self):
        # When in the (local) day runs start
        logger.info("Creating time of day plots...")

        fig, axes = plt.subplots(1, 2, figsize=(14, 5))
        fig.suptitle('Time of Day', fontsize=16)

        sns.countplot(x='LOCAL_HOUR', data=self.df, order=list(range(24)), ax=axes[0], color='steelblue')
        axes[0].set_title('Runs by Local Hour')
        axes[0].set_xlabel('Hour')
        axes[0].set_ylabel('Runs')

        sns.boxplot(x='TIME_OF_DAY', y='MOVING_PACE', data=self.df_filtered,
                    order=['AM', 'PM'], ax=axes[1])
        axes[1].set_title('Moving Pace, AM vs PM (filtered)')
        axes[1].set_xlabel('')
        axes[1].set_ylabel('Minutes per mile')

        return self._finish(fig, 'time_of_day')

    def plot_yearly_trends(self):
        # Volume per year and calories through the year
        logger.info("Creating yearly trend plots...")

        yearly = self.df.groupby('YEAR').agg(RUNS=('DISTANCE_MI', 'size'), MILES=('DISTANCE_MI', 'sum'))

        fig, axes = plt.subplots(1, 2, figsize=(14, 5))
        fig.suptitle('Yearly Trends', fontsize=16)

        axes[0].bar(yearly.index.astype(str), yearly['MILES'], alpha=0.7, edgecolor='black')
        axes[0].set_title('Miles per Year')
        axes[0].set_xlabel('Year')
        axes[0].set_ylabel('Miles')
        for i, runs in enumerate(yearly['RUNS']):
            axes[0].text(i, yearly['MILES'].iloc[i], f'{runs} runs', ha='center', va='bottom')

        by_year = self.df.assign(YEAR=self.df['YEAR'].astype(str))
        sns.scatterplot(x='DAY_OF_YEAR', y='CALORIES', hue='YEAR', data=by_year,
                        palette='husl', ax=axes[1], s=20)
        axes[1].set_title('Calories by Day of Year')
        axes[1].set_xlabel('Day of year')
        axes[1].set_ylabel('kcal')

        return self._finish(fig, 'yearly_trends')

    def plot_regressions(self, fits):
        # Observed calories with the fitted single-predictor lines
        logger.info("Creating regression plots...")

        panels = [
            ('calories~moving_time', self.df, 'MOVING_MIN', 'Moving time (min)'),
            ('calories~elapsed_time', self.df, 'ELAPSED_MIN', 'Elapsed time (min)'),
            ('calories~moving_pace_filtered', self.df_filtered, 'MOVING_PACE', 'Moving pace (min/mile)'),
            ('calories~elapsed_pace_filtered', self.df_filtered, 'ELAPSED_PACE', 'Elapsed pace (min/mile)'),
        ]

        fig, axes = plt.subplots(2, 2, figsize=(15, 10))
        fig.suptitle('Calories Regressions', fontsize=16, fontweight='bold')

        for ax, (name, data, column, label) in zip(axes.flat, panels):
            data = data[[column, 'CALORIES']].replace([np.inf, -np.inf], np.nan).dropna()
            ax.scatter(data[column], data['CALORIES'], alpha=0.6, s=20)
            ax.set_xlabel(label)
            ax.set_ylabel('Calories')
            ax.set_title(name)
            ax.grid(True, alpha=0.3)

            if name not in fits or data.empty:
                continue
            model_fit = fits[name]
            grid = pd.DataFrame({column: np.linspace(data[column].min(), data[column].max(), 50)})
            ax.plot(grid[column], model_fit.predict(grid), 'r--', lw=2)
            ax.text(0.05, 0.95, f'R² = {model_fit.rsquared:.3f}\nn = {model_fit.nobs}',
                    transform=ax.transAxes, verticalalignment='top',
                    bbox=dict(boxstyle='round', facecolor='white', alpha=0.8))

        return self._finish(fig, 'regressions')

    def plot_model_comparison(self, comparison):
        # Frozen moving-time model vs frozen interaction model, run by run
        logger.info("Creating model comparison plots...")
        table = comparison.table

        fig, axes = plt.subplots(1, 2, figsize=(14, 6))
        fig.suptitle(f'Moving-time model closer on {comparison.fraction:.1%} of runs', fontsize=16)

        low, high = table['CALORIES'].min(), table['CALORIES'].max()
        colors = table['SIMPLE_WINS'].map({True: 'tab:blue', False: 'tab:orange'}).tolist()
        for ax, column, title in [(axes[0], 'SIMPLE_PRED', 'Moving time only'),
                                  (axes[1], 'INTERACTION_PRED', 'Moving time x pace')]:
            ax.scatter(table['CALORIES'], table[column], c=colors, alpha=0.6, s=20)
            ax.plot([low, high], [low, high], 'r--', lw=2)
            ax.set_xlabel('Actual Calories')
            ax.set_ylabel('Predicted Calories')
            ax.set_title(title)
            ax.grid(True, alpha=0.3)

        return self._finish(fig, 'model_comparison')

    def _finish(self, fig, name):
        fig.tight_layout()

        plot_filename = None
        if self.save_plots:
            plot_filename = os.path.join(self.output_dir, f'{name}.png')
            fig.savefig(plot_filename, dpi=150, bbox_inches='tight')
            logger.info(f"  saved {plot_filename}")

        if self.show_plots:
            plt.show()
        plt.close(fig)
        return plot_filename
