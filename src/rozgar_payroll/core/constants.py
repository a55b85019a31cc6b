"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_CURRENCY = "INR"
PAISE_PER_RUPEE = 100
DEFAULT_GATEWAY_TIMEOUT_SECONDS = 15
DEFAULT_HISTORY_LIMIT = 200

MONTH_NAMES = (
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)
