"""
Application Constants
=====================

Centralized constants to replace magic numbers throughout the codebase.
Organized by domain for easy discovery and maintenance.

Usage:
    from app.constants import CareDefaults, SeasonalMultipliers
    from app.constants import ReminderDefaults, Intervals
"""

# =============================================================================
# Care cadence
# =============================================================================


class CareDefaults:
    """Default care frequency in days, per plant category and care type."""

    FALLBACK_DAYS = 7

    BY_CATEGORY: dict[str, dict[str, int]] = {
        "indoor": {
            "watering": 7,
            "fertilizing": 14,
            "pruning": 30,
            "repotting": 365,
            "health_check": 30,
            "pest_control": 90,
        },
        "outdoor": {
            "watering": 3,
            "fertilizing": 14,
            "pruning": 60,
            "repotting": 730,
            "health_check": 14,
            "pest_control": 30,
        },
        "succulent": {
            "watering": 14,
            "fertilizing": 30,
            "pruning": 90,
            "repotting": 730,
            "health_check": 60,
            "pest_control": 120,
        },
        "flower": {
            "watering": 5,
            "fertilizing": 7,
            "pruning": 14,
            "repotting": 365,
            "health_check": 7,
            "pest_control": 14,
        },
        "herb": {
            "watering": 3,
            "fertilizing": 14,
            "pruning": 30,
            "repotting": 180,
            "health_check": 14,
            "pest_control": 30,
        },
        "vegetable": {
            "watering": 2,
            "fertilizing": 14,
            "pruning": 21,
            "repotting": 365,
            "health_check": 7,
            "pest_control": 14,
        },
        "tree": {
            "watering": 14,
            "fertilizing": 30,
            "pruning": 180,
            "repotting": 1460,  # 4 years
            "health_check": 90,
            "pest_control": 60,
        },
        "shrub": {
            "watering": 7,
            "fertilizing": 30,
            "pruning": 90,
            "repotting": 730,
            "health_check": 30,
            "pest_control": 60,
        },
    }

    # Historical frequency is trusted only inside this range (days)
    HISTORY_WINDOW_DAYS = 30
    HISTORY_MIN_DAYS = 1
    HISTORY_MAX_DAYS = 365


class SeasonalMultipliers:
    """Interval scaling per month (1 = January). Northern hemisphere."""

    WINTER = 1.5  # Less frequent
    SPRING = 1.0
    SUMMER = 0.8  # More frequent
    AUTUMN = 1.2

    BY_MONTH: dict[int, float] = {
        12: WINTER, 1: WINTER, 2: WINTER,
        3: SPRING, 4: SPRING, 5: SPRING,
        6: SUMMER, 7: SUMMER, 8: SUMMER,
        9: AUTUMN, 10: AUTUMN, 11: AUTUMN,
    }

    # Only these care types follow the seasons; the rest use 1.0
    SEASONAL_CARE_TYPES = frozenset({"watering", "fertilizing"})


# =============================================================================
# Reminders
# =============================================================================


class ReminderDefaults:
    """Reminder engine and preference defaults."""

    URGENT_MULTIPLE = 2.0  # overdue by >= 2x frequency
    MEDIUM_LOOKAHEAD_DAYS = 1.0
    ADVANCE_NOTICE_DAYS = 3
    MAX_REMINDERS_PER_DAY = 10
    MAX_SNOOZES = 3
    DEFAULT_SNOOZE_HOURS = 24
    MAX_SNOOZE_HOURS = 24 * 14
    QUIET_HOURS_START = "22:00"
    QUIET_HOURS_END = "08:00"

    TITLE_VERBS: dict[str, str] = {
        "watering": "Water",
        "fertilizing": "Fertilize",
        "pruning": "Prune",
        "repotting": "Repot",
        "health_check": "Check health of",
        "pest_control": "Treat pests on",
        "other": "Care for",
    }


class Intervals:
    """Polling and scheduling intervals (seconds)."""

    REMINDER_REFRESH = 300
    UPCOMING_NOTICE = 300
    CLIENT_SYNC = 60


class Limits:
    """Size limits for in-memory bookkeeping and list endpoints."""

    NOTIFIED_REMINDER_IDS = 1000
    CARE_LOGS_PAGE = 100
    RECOMMENDATION_HISTORY = 50
    NOTIFICATIONS_PAGE = 50
