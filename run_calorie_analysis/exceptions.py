"""Errors raised by the run calorie analysis pipeline."""


class AnalysisError(Exception):
    """Base class for every failure that aborts an analysis run."""


class LoadError(AnalysisError):
    """The activity export is missing, unreadable or lacks required columns."""


class FitError(AnalysisError):
    """A regression model cannot be fit on the data it was given."""


class ConfigError(AnalysisError):
    """An environment setting cannot be parsed."""
