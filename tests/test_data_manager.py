"""Unit tests for loading and normalizing the activity export."""

import os
import shutil
import sys
import tempfile
import unittest

import numpy as np
import pandas as pd

# Add parent directory to path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from run_calorie_analysis.config import Config
from run_calorie_analysis.data.data_manager import (
    METERS_TO_MILES,
    DataManager,
    filter_outliers,
    normalize_records,
    read_activity_export,
    to_local_hour,
)
from run_calorie_analysis.exceptions import LoadError
from tests.sample_data import KEPT_BY_PACE_FILTER, make_raw_export, write_export


class TestNormalizeRecords(unittest.TestCase):
    """Test cases for the derived columns."""

    def setUp(self):
        self.config = Config()
        self.raw = make_raw_export()
        self.records = normalize_records(self.raw, self.config)

    def test_distance_converted_to_miles(self):
        np.testing.assert_allclose(
            self.records['DISTANCE_MI'], self.raw['Distance.1'] * 0.000621371, rtol=1e-12
        )
        self.assertEqual(METERS_TO_MILES, 0.000621371)

    def test_durations_converted_to_minutes(self):
        np.testing.assert_allclose(self.records['MOVING_MIN'], self.raw['Moving Time'] / 60)
        np.testing.assert_allclose(self.records['ELAPSED_MIN'], self.raw['Elapsed Time'] / 60)
        self.assertAlmostEqual(self.records.loc[0, 'MOVING_MIN'], 30.0)

    def test_pace_is_minutes_per_mile(self):
        expected = self.records['MOVING_MIN'] / self.records['DISTANCE_MI']
        np.testing.assert_allclose(self.records.loc[0, 'MOVING_PACE'], expected[0])
        self.assertAlmostEqual(self.records.loc[0, 'MOVING_PACE'], 30 / (5000 * 0.000621371))
        self.assertAlmostEqual(self.records.loc[0, 'ELAPSED_PACE'], (1900 / 60) / (5000 * 0.000621371))

    def test_zero_distance_pace_is_nan_not_inf(self):
        row = self.records.loc[6]
        self.assertEqual(row['DISTANCE_MI'], 0)
        self.assertTrue(np.isnan(row['MOVING_PACE']))
        self.assertTrue(np.isnan(row['ELAPSED_PACE']))
        self.assertFalse(np.isinf(self.records['MOVING_PACE']).any())

    def test_local_hour_and_label(self):
        self.assertEqual(list(self.records['LOCAL_HOUR']), [6, 19, 0, 8, 16, 4, 23, 11, 5])
        self.assertTrue(self.records['LOCAL_HOUR'].between(0, 23).all())
        expected_labels = np.where(self.records['LOCAL_HOUR'] < 12, 'AM', 'PM')
        self.assertEqual(list(self.records['TIME_OF_DAY']), list(expected_labels))

    def test_local_hour_wraparound(self):
        hours = pd.Series(range(24))
        local = to_local_hour(hours, -7)
        self.assertEqual(list(local[:7]), [h + 17 for h in range(7)])
        self.assertEqual(list(local[7:]), [h - 7 for h in range(7, 24)])

    def test_year_and_day_of_year_use_local_clock(self):
        # 2022-01-01 06:59 at the source clock is New Year's Eve locally
        row = self.records.loc[6]
        self.assertEqual(row['YEAR'], 2021)
        self.assertEqual(row['DAY_OF_YEAR'], 365)
        self.assertEqual(self.records.loc[0, 'YEAR'], 2020)
        self.assertEqual(self.records.loc[0, 'DAY_OF_YEAR'], 5)

    def test_input_frame_not_modified(self):
        raw = make_raw_export()
        before = raw.copy()
        normalize_records(raw, self.config)
        pd.testing.assert_frame_equal(raw, before)

    def test_missing_required_column(self):
        raw = self.raw.drop(columns=['Moving Time'])
        with self.assertRaises(LoadError) as ctx:
            normalize_records(raw, self.config)
        self.assertIn('MOVING_TIME_S', str(ctx.exception))

    def test_missing_optional_column_is_empty(self):
        raw = self.raw.drop(columns=['Max Grade'])
        records = normalize_records(raw, self.config)
        self.assertTrue(records['MAX_GRADE'].isnull().all())

    def test_unparseable_timestamp(self):
        raw = self.raw.copy()
        raw.loc[2, 'Activity Date'] = 'not a date'
        with self.assertRaises(LoadError):
            normalize_records(raw, self.config)

    def test_strava_timestamp_format(self):
        raw = self.raw.copy()
        raw['Activity Date'] = ['Jan 5, 2020, 1:00:00 PM'] * len(raw)
        self.config.TIMESTAMP_FORMAT = '%b %d, %Y, %I:%M:%S %p'
        records = normalize_records(raw, self.config)
        self.assertTrue((records['LOCAL_HOUR'] == 6).all())
        self.assertTrue((records['TIME_OF_DAY'] == 'AM').all())

    def test_custom_field_mapping(self):
        raw = self.raw.rename(columns={'Calories': 'kcal'})
        self.config.FIELD_MAPPING['CALORIES'] = 'kcal'
        records = normalize_records(raw, self.config)
        self.assertEqual(records.loc[0, 'CALORIES'], 600)


class TestFilterOutliers(unittest.TestCase):
    """Test cases for the pace outlier filter."""

    def setUp(self):
        self.records = normalize_records(make_raw_export(), Config())

    def test_kept_records(self):
        filtered = filter_outliers(self.records)
        self.assertEqual(list(filtered.index), KEPT_BY_PACE_FILTER)

    def test_subset_relation(self):
        filtered = filter_outliers(self.records)
        self.assertTrue((filtered['MOVING_PACE'] < 10).all())
        self.assertTrue((filtered['ELAPSED_PACE'] < 25).all())

        failing = ~((self.records['MOVING_PACE'] < 10) & (self.records['ELAPSED_PACE'] < 25))
        self.assertTrue(set(self.records.index[failing]).isdisjoint(filtered.index))

    def test_nan_pace_excluded(self):
        filtered = filter_outliers(self.records)
        self.assertNotIn(6, filtered.index)

    def test_records_not_modified(self):
        before = self.records.copy()
        filtered = filter_outliers(self.records)
        filtered['CALORIES'] = 0
        pd.testing.assert_frame_equal(self.records, before)

    def test_custom_limits(self):
        filtered = filter_outliers(self.records, moving_pace_limit=9.5, elapsed_pace_limit=25)
        self.assertEqual(list(filtered.index), [1, 2, 4, 8])


class TestDataManager(unittest.TestCase):
    """Test cases for DataManager."""

    def setUp(self):
        self.tmp_dir = tempfile.mkdtemp()
        self.csv_path = write_export(os.path.join(self.tmp_dir, 'activities.csv'))
        self.data_manager = DataManager(self.csv_path, Config())

    def tearDown(self):
        shutil.rmtree(self.tmp_dir)

    def test_load_data(self):
        df = self.data_manager.load_data()
        self.assertEqual(len(df), 9)
        self.assertIs(self.data_manager.get_data(), df)
        for col in ['DISTANCE_MI', 'MOVING_PACE', 'LOCAL_HOUR', 'YEAR', 'DAY_OF_YEAR', 'TIME_OF_DAY']:
            self.assertIn(col, df.columns)

    def test_missing_file(self):
        with self.assertRaises(LoadError):
            DataManager(os.path.join(self.tmp_dir, 'nope.csv')).load_data()

    def test_empty_file(self):
        path = os.path.join(self.tmp_dir, 'empty.csv')
        open(path, 'w').close()
        with self.assertRaises(LoadError):
            read_activity_export(path)

    def test_header_only_file(self):
        path = os.path.join(self.tmp_dir, 'header.csv')
        make_raw_export().iloc[0:0].to_csv(path, index=False)
        with self.assertRaises(LoadError):
            read_activity_export(path)

    def test_non_utf8_file(self):
        # Exports saved from a spreadsheet in Latin-1 rather than UTF-8
        path = os.path.join(self.tmp_dir, 'latin.csv')
        with open(path, 'wb') as f:
            f.write('Activity Date,Calories,Activity Name\n2020-01-05 13:00:00,600,Caf\xe9 loop\n'.encode('latin-1'))
        with self.assertRaises(LoadError):
            read_activity_export(path)

    def test_malformed_rows(self):
        path = os.path.join(self.tmp_dir, 'ragged.csv')
        with open(path, 'w') as f:
            f.write('Activity Date,Calories\n2020-01-05 13:00:00,600\n2020-01-06 13:00:00,610,4,9\n')
        with self.assertRaises(LoadError):
            read_activity_export(path)

    def test_duplicate_export_headers(self):
        # The real export repeats "Elapsed Time" and "Distance"
        path = os.path.join(self.tmp_dir, 'strava.csv')
        with open(path, 'w') as f:
            f.write('Activity Date,Elapsed Time,Distance,Moving Time,Elapsed Time,Distance,Calories\n')
            f.write('2020-01-05 13:00:00,1900,4.83,1800,1900.0,5000.0,600\n')
        records = DataManager(path, Config()).load_data()
        self.assertAlmostEqual(records.loc[0, 'DISTANCE_M'], 5000.0)
        self.assertAlmostEqual(records.loc[0, 'DISTANCE_MI'], 5000.0 * METERS_TO_MILES)

    def test_filter_before_load(self):
        with self.assertRaises(LoadError):
            self.data_manager.filter_outliers()

    def test_filter_outliers_uses_config(self):
        self.data_manager.config.MOVING_PACE_LIMIT = 9.5
        self.data_manager.load_data()
        filtered = self.data_manager.filter_outliers()
        self.assertEqual(list(filtered.index), [1, 2, 4, 8])
        self.assertIs(self.data_manager.df_filtered, filtered)

    def test_analyze_missing_data(self):
        self.data_manager.load_data()
        stats = self.data_manager.analyze_missing_data()
        self.assertEqual(stats['CALORIES']['count'], 1)
        self.assertAlmostEqual(stats['CALORIES']['percentage'], 100 / 9)
        self.assertEqual(stats['MOVING_PACE']['count'], 1)

    def test_summarize_by_year(self):
        self.data_manager.load_data()
        summary = self.data_manager.summarize_by_period('YEAR')
        self.assertEqual(summary['RUNS'].to_dict(), {2020: 3, 2021: 4, 2022: 2})

    def test_summarize_by_time_of_day(self):
        self.data_manager.load_data()
        summary = self.data_manager.summarize_by_period('TIME_OF_DAY')
        self.assertEqual(summary['RUNS'].to_dict(), {'AM': 6, 'PM': 3})

    def test_summarize_rejects_unknown_period(self):
        self.data_manager.load_data()
        with self.assertRaises(ValueError):
            self.data_manager.summarize_by_period('WEEKDAY')


if __name__ == '__main__':
    unittest.main()
