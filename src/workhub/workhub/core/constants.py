"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

SESSION_DAYS = 30
PASSWORD_MIN_LENGTH = 8
DEFAULT_HISTORY_LIMIT = 30
DEFAULT_LATE_GRACE_MINUTES = 15
DEFAULT_MESSAGE_PAGE_SIZE = 50
MAX_MESSAGE_PAGE_SIZE = 200
DEFAULT_REPORT_DAYS = 7

# Seeded for every organization created at registration.
DEFAULT_LEAVE_TYPES = (
    {"name": "Casual Leave", "default_days": "12", "carry_forward": False, "max_carry_forward": "0", "paid": True},
    {"name": "Sick Leave", "default_days": "12", "carry_forward": False, "max_carry_forward": "0", "paid": True},
    {"name": "Earned Leave", "default_days": "15", "carry_forward": True, "max_carry_forward": "30", "paid": True},
    {"name": "Unpaid Leave", "default_days": "0", "carry_forward": False, "max_carry_forward": "0", "paid": False},
)

DEFAULT_SHIFT = {
    "name": "Standard",
    "start_time": "09:00",
    "end_time": "18:00",
    "break_minutes": 60,
}
