"""
Trade Tracker Application Entry Point.

Loads a trade export (Excel workbook), orders the trades chronologically and
tracks the accumulated portfolio value from a user-supplied initial investment.
Presents the ledger, a performance summary and charts through a CLI menu.

The last successfully loaded dataset is persisted and restored at startup. A
failed upload reports the error and leaves the current dataset untouched.
"""
import os
import sys
import time
from typing import Optional

import pandas as pd

# --- Custom Module Imports ---
# tp: Runs the ingestion pipeline (read, validate, accumulate, project).
# TradeAnalyser: Ledger sorting, summary statistics and plots.
from src import trade_pipeline as tp
from src.config import ACCEPTED_EXTENSIONS, LEDGER_SORT_FIELDS
from src.errors import StorageError, TradeParseError
from src.models import ParsedDataset
from src.storage import DatasetStore, JsonFileStore
from src.trade_analytics import TradeAnalyser, format_currency
from src.trade_parser import DEFAULT_COLUMNS, SPLIT_COLUMNS, ColumnMapping

# --- Configuration Constants ---
# Directory containing trade workbooks.
DATA_DIR = r'data'

# Directory for the persisted dataset.
STORAGE_DIR = r'data/saved_states'

# Directory for exported tables and plots.
RESULTS_DIR = r'results'

DEFAULT_INITIAL_INVESTMENT = 0.0

class TradeTrackerApp:
    """
    Controls the trade ingestion workflow and the interactive command-line interface.

    Holds the current dataset; every view is derived from it. The dataset is
    replaced only by a successful upload and removed only by an explicit clear.
    """
    def __init__(self, store: Optional[DatasetStore] = None) -> None:
        """
        Initializes application state and restores the stored dataset.

        Args:
            store (Optional[DatasetStore]): Persistence backend. Defaults to a
                JSON file under STORAGE_DIR.
        """
        self.store = store if store is not None else JsonFileStore(STORAGE_DIR)
        self.dataset: Optional[ParsedDataset] = None
        self.report_name: Optional[str] = None

        try:
            self.dataset = self.store.load()
        except StorageError as e:
            print(f" [!] Warning: {e}")
            print("     Starting without saved data.")

        if self.dataset is not None:
            print(f" [+] Restored saved dataset ({len(self.dataset.trades)} trades).")

    def menu(self) -> None:
        """
        Displays the main menu and routes user input to the workflow steps.

        Maintains the event loop until an explicit exit command is received.
        """
        while True:
            self._print_header()
            print(" 1. Load Trade Workbook")
            print(" 2. View All Trades")
            print(" 3. Performance Summary")
            print(" 4. Plot Performance")
            print(" 5. Export Results")
            print()
            print(" 6. Clear Data")
            print()
            print(" Q. Quit")
            print("-" * 60)

            status = f"DATA: {len(self.dataset.trades)} trades" if self.dataset else "DATA: --"
            print(f" STATUS: {status}")
            print("-" * 60)

            choice = input(" >> Select Option: ").upper().strip()
            time.sleep(0.5)

            if choice == '1':
                self.step_load_data()

            elif choice == '2':
                self.step_view_trades()

            elif choice == '3':
                self.step_summary()

            elif choice == '4':
                self.step_plot()

            elif choice == '5':
                self.step_export()

            elif choice == '6':
                self.step_clear_data()

            elif choice == 'Q':
                sys.exit()

            else:
                print(" [!] Invalid selection.")
                time.sleep(0.5)

    # =========================================================================
    # STEP 1: DATA LOADING
    # =========================================================================
    def load_report(
        self,
        path: str,
        initial_investment: float,
        columns: ColumnMapping = DEFAULT_COLUMNS
    ) -> bool:
        """
        Parses a workbook and, on success, replaces and persists the dataset.

        Args:
            path (str): Path to the workbook.
            initial_investment (float): Starting capital.
            columns (ColumnMapping): Sheet layout.

        Returns:
            bool: True if the dataset was replaced, False if the upload failed.
        """
        try:
            dataset = tp.load_trade_report(path, initial_investment, columns=columns)
        except TradeParseError as e:
            # Existing dataset is kept as is.
            print(f"\n [!] Error: {e}")
            return False

        self.dataset = dataset
        self.report_name = os.path.basename(path)

        try:
            self.store.save(dataset)
        except StorageError as e:
            print(f" [!] Warning: {e}")

        return True

    def step_load_data(self) -> None:
        """
        Prompts for a workbook, the initial investment and the sheet layout, then loads it.

        Returns:
            None
        """
        self._print_section_header("STEP 1: LOAD TRADE WORKBOOK")

        path = self._select_file()
        initial_investment = self._prompt_initial_investment()
        columns = self._prompt_layout()

        print(f" [>] Loading: {path}")
        if not self.load_report(path, initial_investment, columns):
            print(" [!] Upload failed. Previous data was kept.")
            time.sleep(0.5)
            return

        final_value = self.dataset.final_value
        print(f"\n     - Total Performance: {format_currency(final_value)}")
        time.sleep(0.5)

    def _select_file(self) -> str:
        """
        Lists workbooks in DATA_DIR (newest first) and returns the selected path.

        Falls back to manual path entry when the folder is empty or on request.
        """
        files = []
        if os.path.exists(DATA_DIR):
            files = [f for f in os.listdir(DATA_DIR) if f.lower().endswith(ACCEPTED_EXTENSIONS)]
            # Sort by modification time (newest first).
            files.sort(key=lambda x: os.path.getmtime(os.path.join(DATA_DIR, x)), reverse=True)

        if files:
            # Iterate until valid input is received.
            while True:
                print(f"\n Available Workbooks in '{DATA_DIR}':")
                print("   [0] Manual Path Entry")
                for idx, f in enumerate(files):
                    print(f"   [{idx+1}] {f}")

                choice = input("\n >> Select file number [Default: 1]: ").strip()
                time.sleep(0.5)

                if not choice:
                    return os.path.join(DATA_DIR, files[0])
                elif choice == '0':
                    break
                else:
                    try:
                        file_idx = int(choice) - 1
                        if 0 <= file_idx < len(files):
                            return os.path.join(DATA_DIR, files[file_idx])
                        print(" [!] Number out of range. Please try again.")
                        time.sleep(1)
                    except ValueError:
                        print(" [!] Invalid input. Please enter a number.")
                        time.sleep(1)

        return input(" >> Enter path to workbook (.xlsx/.xls): ").strip()

    def _prompt_initial_investment(self) -> float:
        """Asks for the initial investment until a number is entered."""
        while True:
            user_input = input(
                f" >> Initial investment [Default: {DEFAULT_INITIAL_INVESTMENT:,.2f}]: "
            ).strip().replace(',', '')
            time.sleep(0.5)

            if not user_input:
                return DEFAULT_INITIAL_INVESTMENT

            try:
                return float(user_input)
            except ValueError:
                print(" [!] Error: Invalid amount.")

    def _prompt_layout(self) -> ColumnMapping:
        """Asks which column layout the sheet uses."""
        print("\n Sheet Layout:")
        print(f"   [1] Combined '{DEFAULT_COLUMNS.date_column}' column (M/D/YY H:MM AM/PM)")
        print(f"   [2] Separate '{SPLIT_COLUMNS.date_column}' and '{SPLIT_COLUMNS.time_column}' columns")
        choice = input(" >> Select layout [Default: 1]: ").strip()
        time.sleep(0.5)
        return SPLIT_COLUMNS if choice == '2' else DEFAULT_COLUMNS

    # =========================================================================
    # STEP 2: TRADE LEDGER
    # =========================================================================
    def step_view_trades(self) -> None:
        """
        Prints the trade ledger sorted by a user-selected column.

        Returns:
            None
        """
        if not self._check_data():
            return

        self._print_section_header("STEP 2: TRADE DETAILS")

        fields = list(LEDGER_SORT_FIELDS)
        print(f" Sort fields: {', '.join(fields)}")
        field = input(" >> Sort by [Default: id]: ").strip() or 'id'
        direction = input(" >> Direction asc/desc [Default: asc]: ").strip().lower() or 'asc'
        time.sleep(0.5)

        analyser = TradeAnalyser(self.dataset)
        try:
            df_ledger = analyser.ledger_frame(field, direction)
        except ValueError as e:
            print(f" [!] {e}")
            time.sleep(0.5)
            return

        print()
        print(self._format_ledger(df_ledger).to_string(index=False))
        input("\n >> Press Enter to return to menu...")
        time.sleep(0.5)

    # =========================================================================
    # STEP 3: PERFORMANCE SUMMARY
    # =========================================================================
    def step_summary(self) -> None:
        """
        Prints the summary statistics of the current dataset.

        Returns:
            None
        """
        if not self._check_data():
            return

        self._print_section_header("STEP 3: PERFORMANCE SUMMARY")

        analyser = TradeAnalyser(self.dataset)
        print(analyser.get_summary_table().to_string())
        input("\n >> Press Enter to return to menu...")
        time.sleep(0.5)

    # =========================================================================
    # STEP 4: PLOTS
    # =========================================================================
    def step_plot(self) -> None:
        """
        Shows the performance chart, the trade value distribution and the drawdown profile.

        Returns:
            None
        """
        if not self._check_data():
            return

        self._print_section_header("STEP 4: TRADING PERFORMANCE")

        analyser = TradeAnalyser(self.dataset)
        analyser.plot_performance()
        analyser.plot_value_distribution()
        analyser.plot_drawdown_profile()

    # =========================================================================
    # STEP 5: EXPORT
    # =========================================================================
    def step_export(self) -> None:
        """
        Saves the ledger, the summary and all plots to a dedicated output directory.

        Returns:
            None
        """
        if not self._check_data():
            return

        self._print_section_header("STEP 5: EXPORT RESULTS")

        # Format: {ReportName}_T{TradeCount}
        input_tag = os.path.splitext(self.report_name or 'saved_dataset')[0]
        folder_name = f"{input_tag}_T{len(self.dataset.trades)}"
        output_dir = os.path.join(RESULTS_DIR, folder_name)

        os.makedirs(output_dir, exist_ok=True)
        print(f" [+] Created output directory: {output_dir}")

        analyser = TradeAnalyser(self.dataset)
        analyser.ledger_frame().to_csv(os.path.join(output_dir, 'trade_ledger.csv'), index=False)
        analyser.get_summary_table().to_csv(os.path.join(output_dir, 'performance_summary.csv'))
        print(" [+] Saved Ledger and Summary")

        analyser.plot_performance(save_path=os.path.join(output_dir, '1_performance.png'))
        analyser.plot_value_distribution(save_path=os.path.join(output_dir, '2_value_distribution.png'))
        analyser.plot_drawdown_profile(save_path=os.path.join(output_dir, '3_drawdown_profile.png'))

        print(f"\n [+] All files saved to: {output_dir}")
        time.sleep(0.5)
        input(f"\n >> Press Enter to return to menu...")
        time.sleep(0.5)

    # =========================================================================
    # STEP 6: CLEAR DATA
    # =========================================================================
    def clear_data(self) -> None:
        """Removes the current and the stored dataset."""
        self.store.clear()
        self.dataset = None
        self.report_name = None

    def step_clear_data(self) -> None:
        """
        Clears all data after confirmation.

        Returns:
            None
        """
        if self.dataset is None:
            print(" [!] Nothing to clear.")
            time.sleep(0.5)
            return

        confirm = input(" >> Are you sure you want to clear all data? [y/N]: ").strip().lower()
        time.sleep(0.5)
        if confirm != 'y':
            return

        try:
            self.clear_data()
        except StorageError as e:
            print(f" [!] Error: {e}")
            return

        print(" [+] All data cleared.")
        time.sleep(0.5)

    # =========================================================================
    # UTILITY FUNCTIONS
    # =========================================================================
    def _check_data(self) -> bool:
        """
        Verifies that a dataset is loaded before a view step runs.

        Returns:
            bool: True if data is available.
        """
        if self.dataset is None:
            print("\n [!] No data loaded. Run Step 1 (Load Trade Workbook) first.")
            time.sleep(0.5)
            return False
        return True

    def _format_ledger(self, df_ledger: pd.DataFrame) -> pd.DataFrame:
        """Formats dates and amounts of a ledger frame for console output."""
        df_display = df_ledger.copy()
        df_display['date'] = df_display['date'].dt.strftime('%Y-%m-%d %H:%M')
        df_display['value'] = df_display['value'].map(format_currency)
        df_display['accumulatedValue'] = df_display['accumulatedValue'].map(format_currency)
        return df_display.rename(columns={
            'id': 'Trade #',
            'symbol': 'Symbol',
            'date': 'Date',
            'value': 'Value',
            'accumulatedValue': 'Accumulated Value'
        })

    def _print_section_header(self, title: str) -> None:
        """
        Displays formatted section header.

        Args:
            title (str): Header text.

        Returns:
            None
        """
        print("\n" + "="*60)
        print(f" {title}")
        print("="*60 + "\n")

    def _print_header(self) -> None:
        """
        Renders main application title banner.

        Returns:
            None
        """
        print("\n" + "#"*60)
        print("       TRADE TRACKER")
        print("#"*60)

if __name__ == "__main__":
    app = TradeTrackerApp()
    try:
        app.menu()
    except KeyboardInterrupt:
        print("\n [!] Interrupted by user. Exiting.")
        time.sleep(0.5)
