# File: const.py
"""Constants for the Habit Streaks integration.

This file centralizes configuration keys, defaults, storage keys, service
names, signal suffixes and the fixed level table so that engines, managers
and services all read from a single source.
"""

import logging
from types import MappingProxyType
from typing import Final

# ------------------------------------------------------------------------------------------------
# General / Integration Information
# ------------------------------------------------------------------------------------------------
HABIT_STREAKS_TITLE = "Habit Streaks"

# Integration Domain
DOMAIN = "habit_streaks"

# Logger
LOGGER = logging.getLogger(__package__)

# Runtime data keys (hass.data[DOMAIN][entry_id][...])
STORE = "store"
HABIT_MANAGER = "habit_manager"
ECONOMY_MANAGER = "economy_manager"
STATISTICS_MANAGER = "statistics_manager"

# Storage and Versioning
STORAGE_KEY = "habit_streaks_data"
STORAGE_VERSION = 1
SCHEMA_VERSION = 1

# ------------------------------------------------------------------------------------------------
# Storage Data Keys
# ------------------------------------------------------------------------------------------------
DATA_META = "meta"
DATA_META_SCHEMA_VERSION = "schema_version"
DATA_USERS = "users"

# User
DATA_USER_TOTAL_POINTS = "total_points"
DATA_USER_LEDGER = "ledger"
DATA_USER_HABITS = "habits"

# Habit
DATA_HABIT_INTERNAL_ID = "internal_id"
DATA_HABIT_TEXT = "text"
DATA_HABIT_CADENCE = "cadence"
DATA_HABIT_WEEKLY_TARGET = "weekly_target"
DATA_HABIT_START_DATE = "start_date"
DATA_HABIT_END_DATE = "end_date"
DATA_HABIT_HALL_OF_FAME_AT = "hall_of_fame_at"
DATA_HABIT_CREATED_AT = "created_at"
DATA_HABIT_CHECKS = "checks"

# Check record
DATA_CHECK_DATE = "date"
DATA_CHECK_CHECKED = "checked"
DATA_CHECK_CREATED_AT = "created_at"
DATA_CHECK_UPDATED_AT = "updated_at"

# Ledger entry
DATA_LEDGER_TIMESTAMP = "timestamp"
DATA_LEDGER_AMOUNT = "amount"
DATA_LEDGER_BALANCE_AFTER = "balance_after"
DATA_LEDGER_SOURCE = "source"
DATA_LEDGER_REFERENCE_ID = "reference_id"
DATA_LEDGER_ITEM_NAME = "item_name"

POINTS_SOURCE_CHECK = "check"
POINTS_SOURCE_UNCHECK = "uncheck"

# ------------------------------------------------------------------------------------------------
# Cadence
# ------------------------------------------------------------------------------------------------
CADENCE_DAILY = "daily"
CADENCE_WEEKLY = "weekly"
CADENCE_OPTIONS = [CADENCE_DAILY, CADENCE_WEEKLY]

DEFAULT_WEEKLY_TARGET = 2
MIN_WEEKLY_TARGET = 1
MAX_WEEKLY_TARGET = 7

DEFAULT_USER_ID = "default"

# ------------------------------------------------------------------------------------------------
# Continuity Rules
# ------------------------------------------------------------------------------------------------
# Gaps of up to two days keep a habit alive, three or more reset it
MAX_GAP_DAYS: Final = 2
HALL_OF_FAME_DAYS: Final = 90
# Progress below this value right after a reset counts as a comeback
RESTART_PROGRESS_WINDOW: Final = 3
DAYS_PER_WEEK: Final = 7

# ------------------------------------------------------------------------------------------------
# Points
# ------------------------------------------------------------------------------------------------
POINTS_BASE_CHECK: Final = 1
POINTS_STREAK_BONUS_7: Final = 2
POINTS_STREAK_BONUS_14: Final = 3
POINTS_STREAK_BONUS_30: Final = 5
POINTS_HALL_OF_FAME: Final = 20
POINTS_RESTART_BONUS: Final = 2
POINTS_UNCHECK_PENALTY: Final = 1

BREAKDOWN_BASE = "check"
BREAKDOWN_STREAK_7 = "streak_7"
BREAKDOWN_STREAK_14 = "streak_14"
BREAKDOWN_STREAK_30 = "streak_30"
BREAKDOWN_RESTART = "restart"
BREAKDOWN_HALL_OF_FAME = "hall_of_fame"

DEFAULT_MAX_LEDGER_ENTRIES = 50
# Ledger entries returned alongside the level
RECENT_LEDGER_ENTRIES = 10

# ------------------------------------------------------------------------------------------------
# Statistics
# ------------------------------------------------------------------------------------------------
PERIOD_WEEK = "week"
PERIOD_MONTH = "month"
DEFAULT_STATS_WEEKS = 4
DEFAULT_STATS_MONTHS = 3
MAX_STATS_PERIODS = 52
# Score divisor for ranking the best habit of the week
BEST_HABIT_STREAK_DIVISOR = 10
HISTORY_CHECK_LIMIT = 500

# ------------------------------------------------------------------------------------------------
# Level Table
# ------------------------------------------------------------------------------------------------
LEVEL_KEY_LEVEL = "level"
LEVEL_KEY_TITLE = "title"
LEVEL_KEY_MIN_POINTS = "min_points"
LEVEL_KEY_PHASE = "phase"
LEVEL_KEY_IS_MILESTONE = "is_milestone"

PHASE_AWAKENING = "Awakening"
PHASE_SKILL = "Skill"
PHASE_ASCENSION = "Ascension"
PHASE_TRANSCENDENCE = "Transcendence"
PHASE_COSMOS = "Cosmos"

# (level, title, min_points) - phases cover ten levels, every tenth is a milestone
_LEVEL_ROWS: Final = (
    (1, "The Awakened", 0),
    (2, "Unknown Villager", 12),
    (3, "Boy with a Stick", 24),
    (4, "Apprentice Adventurer", 36),
    (5, "Novice Explorer", 50),
    (6, "Bronze Adventurer", 65),
    (7, "Street Bodyguard", 80),
    (8, "Training Warrior", 96),
    (9, "Promising Rookie", 113),
    (10, "Full-fledged Adventurer", 130),
    (11, "Iron Swordsman", 148),
    (12, "Dungeon Guide", 167),
    (13, "Veteran Mercenary", 186),
    (14, "Squad Leader", 206),
    (15, "Silver Adventurer", 227),
    (16, "Battle-hardened Warrior", 248),
    (17, "Swift Tracker", 270),
    (18, "Steel Guardian", 293),
    (19, "Royal Knight", 316),
    (20, "Imperial Guard", 340),
    (21, "Gold Adventurer", 365),
    (22, "Dragon Slayer", 390),
    (23, "Frontier Count", 416),
    (24, "Knight Commander", 443),
    (25, "Guardian of Earth", 470),
    (26, "Sage's Disciple", 498),
    (27, "Sky Conqueror", 527),
    (28, "Crown Prince", 556),
    (29, "Legendary Hero", 586),
    (30, "The Savior", 617),
    (31, "Awakened Sage", 648),
    (32, "Time Traveler", 680),
    (33, "Fate Weaver", 713),
    (34, "Demigod", 746),
    (35, "Habit Guardian God", 780),
    (36, "Demon of Continuity", 815),
    (37, "Will Incarnate", 850),
    (38, "King of Destruction & Creation", 886),
    (39, "Ruler of Stars", 923),
    (40, "Sun God", 960),
    (41, "Galaxy Observer", 998),
    (42, "Dimension Transcender", 1037),
    (43, "Akashic Librarian", 1076),
    (44, "Void Sovereign", 1116),
    (45, "Big Bang Creator", 1157),
    (46, "Omniscient Scribe", 1198),
    (47, "Omega Kaiser", 1240),
    (48, "God of End & Beginning", 1283),
    (49, "Conceptual Being: Continuity", 1326),
    (50, "The Ultimate Habit God", 1370),
)

_PHASES: Final = (
    PHASE_AWAKENING,
    PHASE_SKILL,
    PHASE_ASCENSION,
    PHASE_TRANSCENDENCE,
    PHASE_COSMOS,
)

LEVEL_TABLE: Final = tuple(
    MappingProxyType(
        {
            LEVEL_KEY_LEVEL: level,
            LEVEL_KEY_TITLE: title,
            LEVEL_KEY_MIN_POINTS: min_points,
            LEVEL_KEY_PHASE: _PHASES[(level - 1) // 10],
            LEVEL_KEY_IS_MILESTONE: level % 10 == 0,
        }
    )
    for level, title, min_points in _LEVEL_ROWS
)

MAX_LEVEL = len(LEVEL_TABLE)

# ------------------------------------------------------------------------------------------------
# Signals (dispatcher suffixes, scoped per config entry)
# ------------------------------------------------------------------------------------------------
SIGNAL_SUFFIX_CHECK_TOGGLED = "check_toggled"
SIGNAL_SUFFIX_HABIT_CREATED = "habit_created"
SIGNAL_SUFFIX_HABIT_DELETED = "habit_deleted"
SIGNAL_SUFFIX_POINTS_CHANGED = "points_changed"
SIGNAL_SUFFIX_LEVEL_CHANGED = "level_changed"
SIGNAL_SUFFIX_HALL_OF_FAME = "hall_of_fame"

# ------------------------------------------------------------------------------------------------
# Services
# ------------------------------------------------------------------------------------------------
SERVICE_CREATE_HABIT = "create_habit"
SERVICE_DELETE_HABIT = "delete_habit"
SERVICE_TOGGLE_CHECK = "toggle_check"
SERVICE_GET_HABITS = "get_habits"
SERVICE_GET_HABIT_HISTORY = "get_habit_history"
SERVICE_GET_STATISTICS = "get_statistics"
SERVICE_GET_LEVEL = "get_level"

FIELD_USER_ID = "user_id"
FIELD_HABIT_ID = "habit_id"
FIELD_TEXT = "text"
FIELD_CADENCE = "cadence"
FIELD_WEEKLY_TARGET = "weekly_target"
FIELD_START_DATE = "start_date"
FIELD_DATE = "date"
FIELD_CHECKED = "checked"
FIELD_WEEKS = "weeks"
FIELD_MONTHS = "months"

# Translation keys
TRANS_KEY_ERROR_SINGLE_INSTANCE = "single_instance_allowed"
TRANS_KEY_ERROR_HABIT_NOT_FOUND = "habit_not_found"
TRANS_KEY_ERROR_INVALID_DATE = "invalid_date"
TRANS_KEY_ERROR_NO_ENTRY = "no_entry"
