import os
import tempfile
import unittest

import matplotlib
matplotlib.use('Agg')
import pandas as pd

import main
from src.storage import InMemoryStore
from src.trade_pipeline import parse


class TestTradeTrackerApp(unittest.TestCase):

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.good_path = os.path.join(self.tmp.name, 'report.xlsx')
        self.bad_path = os.path.join(self.tmp.name, 'broken.xlsx')

        pd.DataFrame({
            'SYMBOL': ['AAPL', 'MSFT'],
            'DateTime': ['1/2/24 3:00 PM', '1/1/24 9:00 AM'],
            'value': [100, -50],
        }).to_excel(self.good_path, index=False)

        pd.DataFrame({
            'SYMBOL': ['AAPL', 'TSLA'],
            'DateTime': ['1/2/24 3:00 PM', '13/1/24 3:00 PM'],
            'value': [100, 5],
        }).to_excel(self.bad_path, index=False)

        self.store = InMemoryStore()
        self.app = main.TradeTrackerApp(store=self.store)

    def tearDown(self):
        self.tmp.cleanup()

    def test_starts_empty(self):
        self.assertIsNone(self.app.dataset)

    def test_successful_upload_replaces_and_persists(self):
        self.assertTrue(self.app.load_report(self.good_path, 1000))

        self.assertEqual(self.app.dataset.final_value, 1050.0)
        self.assertEqual(self.app.report_name, 'report.xlsx')
        self.assertEqual(self.store.load(), self.app.dataset)

    def test_failed_upload_keeps_previous_dataset(self):
        """
        CASE: A valid report is loaded, then a report with an invalid month.
        Expected: The second upload is rejected and nothing changes.
        """
        self.app.load_report(self.good_path, 1000)
        before = self.app.dataset

        print("\n [TEST] Uploading invalid report...")
        self.assertFalse(self.app.load_report(self.bad_path, 500))

        self.assertIs(self.app.dataset, before)
        self.assertEqual(self.store.load(), before)

    def test_unsupported_file_is_rejected(self):
        self.assertFalse(self.app.load_report(os.path.join(self.tmp.name, 'report.csv'), 1000))
        self.assertIsNone(self.app.dataset)
        self.assertIsNone(self.store.load())

    def test_clear_data(self):
        self.app.load_report(self.good_path, 1000)
        self.app.clear_data()

        self.assertIsNone(self.app.dataset)
        self.assertIsNone(self.store.load())

    def test_restores_saved_dataset(self):
        dataset = parse([{'SYMBOL': 'X', 'DateTime': '3/1/24 10:00 AM', 'value': 7}], 10)
        store = InMemoryStore()
        store.save(dataset)

        app = main.TradeTrackerApp(store=store)
        self.assertEqual(app.dataset, dataset)

    def test_views_require_data(self):
        self.assertFalse(self.app._check_data())
        self.app.load_report(self.good_path, 1000)
        self.assertTrue(self.app._check_data())


if __name__ == '__main__':
    unittest.main()
