#!/usr/bin/env python3
"""
Run Calorie Analysis - end-to-end pipeline

Loads an activity export, filters pace outliers, fits the calories regressions,
scores the frozen moving-time model against the frozen interaction model,
draws the charts and writes a plain-text report.
"""

import argparse
import logging
import os
import sys
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional

import pandas as pd

from run_calorie_analysis.config import Config
from run_calorie_analysis.data.data_manager import DataManager
from run_calorie_analysis.exceptions import AnalysisError
from run_calorie_analysis.models.regression_evaluator import (
    FROZEN_COEFFICIENTS,
    FrozenCoefficients,
    ModelComparison,
    ModelFit,
    RegressionEvaluator,
)
from run_calorie_analysis.visualization.data_visualizer import DataVisualizer

logger = logging.getLogger(__name__)


@dataclass
class AnalysisResults:
    records: pd.DataFrame
    filtered: pd.DataFrame
    fits: Dict[str, ModelFit]
    summary: pd.DataFrame
    comparison: ModelComparison
    report_file: Optional[str] = None
    plot_files: List[str] = field(default_factory=list)


class AnalysisPipeline:
    """Main orchestrator: loader -> outlier filter -> evaluator -> charts and report."""

    def __init__(self, config: Optional[Config] = None,
                 coefficients: FrozenCoefficients = FROZEN_COEFFICIENTS):
        self.config = config or Config()
        self.coefficients = coefficients

    def run(self, filepath: Optional[str] = None) -> AnalysisResults:
        """Run the whole analysis against one export file."""
        filepath = filepath or self.config.DATA_FILE
        logger.info("Starting run calorie analysis...")

        # Step 1: Load and derive
        data_manager = DataManager(filepath, self.config)
        records = data_manager.load_data()
        data_manager.analyze_missing_data()

        # Step 2: Outlier-filtered view
        filtered = data_manager.filter_outliers()

        # Step 3: Regressions and frozen model comparison
        evaluator = RegressionEvaluator(records, filtered, coefficients=self.coefficients)
        fits = evaluator.fit_all()
        summary = evaluator.summary_table()
        comparison = evaluator.compare_frozen_models()

        results = AnalysisResults(
            records=records,
            filtered=filtered,
            fits=fits,
            summary=summary,
            comparison=comparison,
        )

        # Step 4: Charts
        results.plot_files = self._create_plots(records, filtered, fits, comparison)

        # Step 5: Report
        results.report_file = generate_report(
            results,
            yearly=data_manager.summarize_by_period('YEAR'),
            time_of_day=data_manager.summarize_by_period('TIME_OF_DAY'),
            output_dir=self.config.OUTPUT_DIR,
            source=filepath,
        )

        logger.info("Run calorie analysis completed successfully!")
        return results

    def _create_plots(self, records, filtered, fits, comparison):
        if not (self.config.SAVE_PLOTS or self.config.SHOW_PLOTS):
            return []

        visualizer = DataVisualizer(
            records,
            filtered,
            output_dir=self.config.OUTPUT_DIR,
            save_plots=self.config.SAVE_PLOTS,
            show_plots=self.config.SHOW_PLOTS,
            moving_pace_limit=self.config.MOVING_PACE_LIMIT,
        )
        plot_files = [
            visualizer.plot_distributions(),
            visualizer.plot_time_of_day(),
            visualizer.plot_yearly_trends(),
            visualizer.plot_regressions(fits),
            visualizer.plot_model_comparison(comparison),
        ]
        return [f for f in plot_files if f]


def generate_report(results: AnalysisResults, yearly: pd.DataFrame, time_of_day: pd.DataFrame,
                    output_dir: str = "analysis_outputs", source: str = "") -> str:
    """Write the plain-text analysis report and return its path."""
    logger.info("++ Generating Analysis Report ++")
    os.makedirs(output_dir, exist_ok=True)
    report_filename = os.path.join(output_dir, 'analysis_report.txt')

    records, filtered, comparison = results.records, results.filtered, results.comparison
    coefficients = comparison.coefficients

    with open(report_filename, 'w') as f:
        f.write("=" * 80 + "\n")
        f.write("RUN CALORIE ANALYSIS - REPORT\n")
        f.write("=" * 80 + "\n\n")

        f.write("DATA OVERVIEW\n")
        f.write("-" * 40 + "\n")
        f.write(f"Source: {source}\n")
        f.write(f"Generated: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}\n")
        f.write(f"Runs: {len(records):,}\n")
        f.write(f"Runs after pace filter: {len(filtered):,} "
                f"({(len(filtered) / len(records)) * 100:.1f}% retained)\n")
        f.write(f"Total miles: {records['DISTANCE_MI'].sum():,.1f}\n\n")

        f.write("RUNS BY YEAR\n")
        f.write("-" * 40 + "\n")
        f.write(yearly.to_string(float_format=lambda x: f"{x:.2f}"))
        f.write("\n\n")

        f.write("RUNS BY TIME OF DAY\n")
        f.write("-" * 40 + "\n")
        f.write(time_of_day.to_string(float_format=lambda x: f"{x:.2f}"))
        f.write("\n\n")

        f.write("REGRESSION MODELS (OLS)\n")
        f.write("-" * 40 + "\n")
        f.write(results.summary.to_string(index=False, float_format=lambda x: f"{x:.4g}"))
        f.write("\n\n")

        f.write("FROZEN MODEL COMPARISON\n")
        f.write("-" * 40 + "\n")
        f.write(f"Interaction: calories = {coefficients.interaction_intercept} "
                f"+ {coefficients.interaction_time}*t + {coefficients.interaction_pace}*p "
                f"+ {coefficients.interaction_time_pace}*t*p\n")
        f.write(f"Moving time: calories = {coefficients.simple_intercept} + {coefficients.simple_time}*t\n")
        f.write(f"Runs scored: {comparison.evaluated:,} ({comparison.excluded:,} without calories or pace)\n")
        f.write(f"Moving-time model closer: {comparison.simple_wins:,} runs\n")
        f.write(f"Fraction: {comparison.fraction:.4f} (of all {len(results.records):,} runs)\n")
        f.write(f"Fraction of scored runs: {comparison.scored_fraction:.4f}\n")
        f.write(f"MAE moving-time model: {comparison.simple_mae:.1f} calories\n")
        f.write(f"MAE interaction model: {comparison.interaction_mae:.1f} calories\n")

    logger.info(f"Report saved to: {report_filename}")
    return report_filename


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Calories regression analysis of an activity export")
    parser.add_argument("filepath", nargs="?", default=None,
                        help="Activity export CSV (defaults to DATA_FILE)")
    return parser.parse_args(argv)


def main(argv=None):
    """Main entry point."""
    args = parse_args(argv)

    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    try:
        config = Config()
        logging.getLogger().setLevel(getattr(logging, config.LOG_LEVEL, logging.INFO))
        results = AnalysisPipeline(config).run(args.filepath)
    except KeyboardInterrupt:
        logger.info("Analysis interrupted by user")
        return 1
    except AnalysisError as e:
        logger.error(f"Analysis failed: {e}")
        logger.exception("Full traceback:")
        return 1

    logger.info("=" * 50)
    logger.info("ANALYSIS SUMMARY")
    logger.info("=" * 50)
    logger.info(f"Runs: {len(results.records):,} ({len(results.filtered):,} after pace filter)")
    logger.info(f"Moving-time model closer on {results.comparison.fraction:.1%} of runs")
    logger.info(f"Report: {results.report_file}")
    logger.info("=" * 50)
    return 0


if __name__ == "__main__":
    sys.exit(main())
