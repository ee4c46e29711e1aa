DEFAULT_INTERVALS = (1, 7, 30, 365)  # days
MAX_INTERVAL_DAYS = 36500  # days, keeps now + interval inside datetime range
DEFAULT_SCHEDULE_NAME = "Default Schedule"
DEFAULT_SCHEDULE_DESCRIPTION = "Default spaced repetition schedule"
CUSTOM_SCHEDULE_NAME = "Custom Schedule"

UNGROUPED_KEY = "ungrouped"
DEFAULT_FORECAST_DAYS = 7
MAX_FORECAST_DAYS = 366
DEFAULT_HISTORY_DAYS = 30
MAX_HISTORY_DAYS = 3660
