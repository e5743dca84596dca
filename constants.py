# constants.py

MONTHS_PER_YEAR: int = 12
PERCENT: float = 100.0
CRORE: float = 1e7
LAKH: float = 1e5
RUPEE_SYMBOL: str = "₹"
DEFAULT_CONFIG_FILENAME: str = "config.json"
DEFAULT_CLIENT_LABEL: str = "Client"
DEFAULT_INVESTOR_LABEL: str = "Our Valued Investor"
REPORT_FILENAME_SUFFIX: str = "_SWP_Report.pdf"
HIGH_RATE_WARNING_PCT: float = 30.0

# Plotting constants
TRAJECTORY_COLOR = '#f97316'
CASHFLOW_COLOR = '#6366f1'
GRID_COLOR = '#94a3b8'

MARKET_DISCLOSURE: str = (
    "Mutual Fund investments are subject to market risks. Please read all "
    "scheme-related documents carefully before investing. This projection is "
    "a mathematical model based on assumed rates and does not guarantee "
    "actual returns."
)
