"""Calorie regression analysis over an exported running log."""

from run_calorie_analysis.config import Config
from run_calorie_analysis.exceptions import AnalysisError, ConfigError, FitError, LoadError

__version__ = "1.0.0"

__all__ = ["Config", "AnalysisError", "ConfigError", "FitError", "LoadError", "__version__"]
