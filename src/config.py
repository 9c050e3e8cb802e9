# ==========================================
# 0. SPREADSHEET SCHEMA
# ==========================================

# Canonical column names of the trade export (header row of the first sheet)
SYMBOL_COLUMN = 'SYMBOL'
DATETIME_COLUMN = 'DateTime'
VALUE_COLUMN = 'value'

# Column names used by the older export with separate date and time cells
SPLIT_DATE_COLUMN = 'Date'
SPLIT_TIME_COLUMN = 'Time'

# Only the first worksheet is read
SHEET_INDEX = 0

# File extension -> pandas.read_excel engine
EXCEL_ENGINES = {
    '.xlsx': 'openpyxl',
    '.xls': 'xlrd'
}

ACCEPTED_EXTENSIONS = tuple(EXCEL_ENGINES.keys())

# ==========================================
# 1. DATE/TIME GRAMMAR
# ==========================================

# Two-digit years are read as 20YY (no other century is supported)
CENTURY_PREFIX = '20'

EXPECTED_DATETIME_FORMAT = 'M/D/YY H:MM AM/PM'

# ==========================================
# 2. CHART PROJECTION
# ==========================================

INITIAL_SYMBOL = 'INITIAL'
INITIAL_ID = 0

# ==========================================
# 3. PERSISTENCE
# ==========================================

# Fixed storage key of the saved dataset (no namespacing or versioning)
STORAGE_KEY = 'tradingData'

# ==========================================
# 4. LEDGER DISPLAY
# ==========================================

# Ledger sort field -> Trade attribute
LEDGER_SORT_FIELDS = {
    'id': 'id',
    'symbol': 'symbol',
    'date': 'timestamp',
    'value': 'value',
    'accumulatedValue': 'accumulated_value'
}

LEDGER_SORT_DIRECTIONS = ('asc', 'desc')

# ==========================================
# 5. PLOT STYLE
# ==========================================

PLOT_STYLE = {
    'font.family': 'sans-serif',
    'font.size': 13,
    'axes.titlesize': 16,
    'axes.titleweight': 'bold',
    'axes.labelsize': 14,
    'xtick.labelsize': 13,
    'ytick.labelsize': 13,
    'legend.fontsize': 13,
    'figure.titlesize': 18
}

PLOT_DPI = 300
