"""
Configuration for the run calorie analysis.

Defaults live on the dataclass and every field can be overridden from the
environment (or a local .env file) so the same code runs against different
exports without edits.
"""

import os
from dataclasses import dataclass, field
from typing import Dict, Optional

from dotenv import load_dotenv

from run_calorie_analysis.exceptions import ConfigError

# Load environment variables from .env file if it exists
load_dotenv()

# Canonical column name -> header in the Strava bulk export.
# The export repeats "Elapsed Time" and "Distance"; pandas reads the second
# copies as "Elapsed Time.1" and "Distance.1". The second Distance is meters.
DEFAULT_FIELD_MAPPING = {
    'TIMESTAMP': 'Activity Date',
    'NAME': 'Activity Name',
    'DESCRIPTION': 'Activity Description',
    'ELAPSED_TIME_S': 'Elapsed Time',
    'MOVING_TIME_S': 'Moving Time',
    'DISTANCE_M': 'Distance.1',
    'MAX_SPEED': 'Max Speed',
    'ELEVATION_GAIN': 'Elevation Gain',
    'ELEVATION_LOSS': 'Elevation Loss',
    'ELEVATION_LOW': 'Elevation Low',
    'ELEVATION_HIGH': 'Elevation High',
    'MAX_GRADE': 'Max Grade',
    'AVERAGE_GRADE': 'Average Grade',
    'CALORIES': 'Calories',
}

_TRUE_VALUES = {'1', 'true', 'yes', 'on'}


def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in _TRUE_VALUES


def _env_number(name: str, default, cast):
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return cast(value)
    except ValueError as e:
        raise ConfigError(f"{name} must be a {cast.__name__}, got {value!r}") from e


@dataclass
class Config:
    """Configuration class with environment variable defaults."""

    # Paths
    DATA_FILE: str = "data/activities.csv"
    OUTPUT_DIR: str = "analysis_outputs"

    # Source clock -> local clock, in hours
    UTC_OFFSET_HOURS: int = -7
    # None lets pandas infer the timestamp format
    TIMESTAMP_FORMAT: Optional[str] = None

    # Outlier bounds, minutes per mile
    MOVING_PACE_LIMIT: float = 10.0
    ELAPSED_PACE_LIMIT: float = 25.0

    # Output behavior
    SAVE_PLOTS: bool = True
    SHOW_PLOTS: bool = False
    LOG_LEVEL: str = "INFO"

    FIELD_MAPPING: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_FIELD_MAPPING))

    def __post_init__(self):
        """Load configuration from environment variables."""
        # Paths
        self.DATA_FILE = os.getenv('DATA_FILE', self.DATA_FILE)
        self.OUTPUT_DIR = os.getenv('OUTPUT_DIR', self.OUTPUT_DIR)

        # Time handling
        self.UTC_OFFSET_HOURS = _env_number('UTC_OFFSET_HOURS', self.UTC_OFFSET_HOURS, int)
        self.TIMESTAMP_FORMAT = os.getenv('TIMESTAMP_FORMAT', self.TIMESTAMP_FORMAT)

        # Outlier bounds
        self.MOVING_PACE_LIMIT = _env_number('MOVING_PACE_LIMIT', self.MOVING_PACE_LIMIT, float)
        self.ELAPSED_PACE_LIMIT = _env_number('ELAPSED_PACE_LIMIT', self.ELAPSED_PACE_LIMIT, float)

        # Output behavior
        self.SAVE_PLOTS = _env_flag('SAVE_PLOTS', self.SAVE_PLOTS)
        self.SHOW_PLOTS = _env_flag('SHOW_PLOTS', self.SHOW_PLOTS)
        self.LOG_LEVEL = os.getenv('LOG_LEVEL', self.LOG_LEVEL).upper()
