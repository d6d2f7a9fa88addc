from run_calorie_analysis.data.data_manager import (
    DataManager,
    filter_outliers,
    normalize_records,
    read_activity_export,
)

__all__ = ["DataManager", "filter_outliers", "normalize_records", "read_activity_export"]
