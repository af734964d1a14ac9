# mining_model/config/settings.py

from mining_model.config.env import LOG_LEVEL

# --- Network constants ---

# Bitcoin targets one block every 10 minutes
BLOCKS_PER_DAY = 144
# Projections use a flat 30-day month for block counts
DAYS_PER_MONTH = 30
BLOCKS_PER_MONTH = BLOCKS_PER_DAY * DAYS_PER_MONTH  # 4,320
# Average hours in a calendar month, used for energy billing
HOURS_PER_MONTH = 730

# Unit conversions
TH_PER_EH = 1_000_000
WATTS_PER_MW = 1_000_000
KW_PER_MW = 1000

# Halving schedule as (year, month, day) -> block subsidy in BTC.
# Stored as tuples to avoid datetime import in settings.
# Entries after 2024 are estimates.
HALVING_SCHEDULE = (
    ((2009, 1, 3), 50.0),  # genesis
    ((2012, 11, 28), 25.0),
    ((2016, 7, 9), 12.5),
    ((2020, 5, 11), 6.25),
    ((2024, 4, 19), 3.125),
    ((2028, 4, 1), 1.5625),
    ((2032, 4, 1), 0.78125),
)

# --- Fallback economics (used when a scenario month is missing) ---

DEFAULT_BTC_PRICE_USD = 40000.0
DEFAULT_GLOBAL_HASHRATE_EH = 500.0
DEFAULT_TX_FEES_PER_BLOCK = 0.05

# --- Hardware failure curve ---
# Weibull-like cumulative failure: shape > 1 means accelerating wear-out.
# shape=10 / scale=1.08 keeps failures under 5% until 80% of lifespan
# (~4.6%) and past 20% by 95% of lifespan (~23%).
FAILURE_SHAPE = 10.0
FAILURE_SCALE = 1.08
# Maximum cumulative failure fraction; ~5% of units outlive their lifespan
FAILURE_CAP = 0.95

# --- Depreciation ---

# Site infrastructure CapEx is amortised straight-line over this window
SITE_CAPEX_DEPRECIATION_YEARS = 10
SITE_CAPEX_DEPRECIATION_MONTHS = SITE_CAPEX_DEPRECIATION_YEARS * 12

# --- Reporting ---

MONTH_LABEL_FMT = "%b %Y"
CSV_DECIMALS = 2
CSV_BTC_DECIMALS = 4
RESULTS_CSV_COLUMNS = [
    "Month",
    "Active Miners",
    "Hashrate (TH/s)",
    "BTC Mined",
    "Revenue (USD)",
    "Electricity Cost",
    "OPEX",
    "Team Cost",
    "Operating Expenses",
    "Site Depreciation",
    "Miner Depreciation",
    "Total Depreciation",
    "EBITDA",
    "Operating Cost per BTC",
]

# --- Logging ---

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
DEFAULT_LOG_LEVEL = LOG_LEVEL
