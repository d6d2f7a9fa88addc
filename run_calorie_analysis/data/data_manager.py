import logging
from pathlib import Path

import numpy as np
import pandas as pd

from run_calorie_analysis.config import Config
from run_calorie_analysis.exceptions import LoadError

logger = logging.getLogger(__name__)

METERS_TO_MILES = 0.000621371
SECONDS_PER_MINUTE = 60

REQUIRED_FIELDS = ['TIMESTAMP', 'ELAPSED_TIME_S', 'MOVING_TIME_S', 'DISTANCE_M', 'CALORIES']
TEXT_FIELDS = ['NAME', 'DESCRIPTION']

DERIVED_FIELDS = [
    'DISTANCE_MI', 'ELAPSED_MIN', 'MOVING_MIN', 'ELAPSED_PACE', 'MOVING_PACE',
    'LOCAL_TIMESTAMP', 'LOCAL_HOUR', 'YEAR', 'DAY_OF_YEAR', 'TIME_OF_DAY'
]


def read_activity_export(filepath):
    # Read the raw export exactly as written; column selection happens in normalize_records
    path = Path(filepath)
    if not path.is_file():
        raise LoadError(f"Activity export not found: {path}")

    try:
        raw_df = pd.read_csv(path)
    except (pd.errors.EmptyDataError, pd.errors.ParserError, UnicodeDecodeError, OSError) as e:
        raise LoadError(f"Could not read activity export {path}: {e}") from e

    if raw_df.empty:
        raise LoadError(f"Activity export {path} contains no activities")

    return raw_df


def compute_pace(minutes, miles):
    # Minutes per mile. Zero or missing distance gives NaN rather than inf so
    # these rows drop out of every pace-based step the same way.
    return minutes / miles.where(miles > 0)


def to_local_hour(source_hour, utc_offset_hours=-7):
    # With the default offset: hour + 17 before 07:00, hour - 7 from 07:00 on
    return (source_hour + utc_offset_hours) % 24


def time_of_day_label(local_hour):
    return pd.Series(np.where(local_hour < 12, 'AM', 'PM'), index=local_hour.index)


def normalize_records(raw_df, config=None):
    """
    Build the activity record set from a raw export.

    Source headers are resolved only through config.FIELD_MAPPING, so the
    duplicated "Elapsed Time" / "Distance" headers in the export never get
    matched by position or by a fuzzy name. The input frame is left untouched.

    Raises:
        LoadError: a required column is absent or timestamps cannot be parsed.
    """
    config = config or Config()
    mapping = config.FIELD_MAPPING

    missing_required = [
        f"{canonical} ({mapping.get(canonical)!r})"
        for canonical in REQUIRED_FIELDS
        if mapping.get(canonical) not in raw_df.columns
    ]
    if missing_required:
        raise LoadError(f"Missing required columns: {', '.join(missing_required)}")

    df = pd.DataFrame(index=raw_df.index)
    for canonical, source in mapping.items():
        if source in raw_df.columns:
            df[canonical] = raw_df[source]
        else:
            logger.warning(f"Column {source!r} not in export, {canonical} will be empty")
            df[canonical] = np.nan

    # Coerce numeric types
    numeric_cols = [col for col in df.columns if col not in TEXT_FIELDS + ['TIMESTAMP']]
    for col in numeric_cols:
        df[col] = pd.to_numeric(df[col], errors='coerce')

    try:
        timestamps = pd.to_datetime(df['TIMESTAMP'], format=config.TIMESTAMP_FORMAT)
    except (ValueError, TypeError) as e:
        raise LoadError(f"Could not parse timestamps in {mapping['TIMESTAMP']!r}: {e}") from e
    if timestamps.isnull().any():
        raise LoadError(f"{timestamps.isnull().sum()} activities have no timestamp")
    df['TIMESTAMP'] = timestamps

    # Units
    df['DISTANCE_MI'] = df['DISTANCE_M'] * METERS_TO_MILES
    df['ELAPSED_MIN'] = df['ELAPSED_TIME_S'] / SECONDS_PER_MINUTE
    df['MOVING_MIN'] = df['MOVING_TIME_S'] / SECONDS_PER_MINUTE

    # Pace, minutes per mile
    df['ELAPSED_PACE'] = compute_pace(df['ELAPSED_MIN'], df['DISTANCE_MI'])
    df['MOVING_PACE'] = compute_pace(df['MOVING_MIN'], df['DISTANCE_MI'])

    # Clock
    df['LOCAL_TIMESTAMP'] = timestamps + pd.Timedelta(hours=config.UTC_OFFSET_HOURS)
    df['LOCAL_HOUR'] = to_local_hour(timestamps.dt.hour, config.UTC_OFFSET_HOURS)
    df['YEAR'] = df['LOCAL_TIMESTAMP'].dt.year
    df['DAY_OF_YEAR'] = df['LOCAL_TIMESTAMP'].dt.dayofyear
    df['TIME_OF_DAY'] = time_of_day_label(df['LOCAL_HOUR'])

    zero_distance = (df['DISTANCE_MI'] <= 0).sum()
    if zero_distance:
        logger.warning(f"{zero_distance} activities have no distance; their pace is left empty")

    return df.reset_index(drop=True)


def filter_outliers(records, moving_pace_limit=10.0, elapsed_pace_limit=25.0):
    # Keep runs with a plausible pace. NaN pace fails both comparisons.
    keep = (records['MOVING_PACE'] < moving_pace_limit) & (records['ELAPSED_PACE'] < elapsed_pace_limit)
    return records.loc[keep].copy()


class DataManager:

    def __init__(self, filepath, config=None):
        self.filepath = filepath
        self.config = config or Config()
        self.raw_df = None
        self.df = None
        self.df_filtered = None

    def load_data(self):
        # Load the export and derive the computed columns
        logger.info(f"Loading activities from {self.filepath}")
        self.raw_df = read_activity_export(self.filepath)
        self.df = normalize_records(self.raw_df, self.config)
        logger.info(f"Loaded {len(self.df):,} activities "
                    f"({self.df['YEAR'].min()}-{self.df['YEAR'].max()})")
        return self.df

    def filter_outliers(self):
        # Secondary view used by the filtered model fits
        self._require_data()
        self.df_filtered = filter_outliers(
            self.df,
            moving_pace_limit=self.config.MOVING_PACE_LIMIT,
            elapsed_pace_limit=self.config.ELAPSED_PACE_LIMIT,
        )

        removed = len(self.df) - len(self.df_filtered)
        logger.info(f"Outlier filter (moving pace < {self.config.MOVING_PACE_LIMIT}, "
                    f"elapsed pace < {self.config.ELAPSED_PACE_LIMIT}): "
                    f"kept {len(self.df_filtered):,}, removed {removed:,}")
        return self.df_filtered

    def analyze_missing_data(self):
        # Identify the count and percentage of missing values for the modeled fields
        self._require_data()
        logger.info("++ Missing Data Analysis ++")

        key_features = ['CALORIES', 'ELAPSED_TIME_S', 'MOVING_TIME_S', 'DISTANCE_M',
                        'ELAPSED_PACE', 'MOVING_PACE', 'ELEVATION_GAIN', 'MAX_SPEED']

        missing_stats = {}
        for col in key_features:
            missing_count = int(self.df[col].isnull().sum())
            missing_pct = (missing_count / len(self.df)) * 100
            missing_stats[col] = {'count': missing_count, 'percentage': missing_pct}
            logger.info(f"{col:<16}: {missing_count:>6,} missing ({missing_pct:>5.1f}%)")

        return missing_stats

    def summarize_by_period(self, by='YEAR'):
        # Aggregate runs by year or by AM/PM
        self._require_data()
        if by not in ('YEAR', 'TIME_OF_DAY', 'LOCAL_HOUR'):
            raise ValueError(f"Cannot summarize by {by!r}")

        summary = self.df.groupby(by).agg(
            RUNS=('DISTANCE_MI', 'size'),
            MILES=('DISTANCE_MI', 'sum'),
            MEAN_MOVING_PACE=('MOVING_PACE', 'mean'),
            MEAN_CALORIES=('CALORIES', 'mean'),
        )
        return summary

    def get_data(self):
        return self.df

    def _require_data(self):
        if self.df is None:
            raise LoadError("No activities loaded; call load_data() first")
