"""
Centralized constants for availability pulls (Encapsulate What Changes).

Business policy that is likely to change (cache TTL, slot-length rounding, which
provider gets capacity buckets, the primary service) lives here instead of being
scattered across the engine. Tunables that differ per environment are in config.Settings.
"""

# Cache gateway: persisted pulls younger than this are reused (age == TTL still counts as fresh)
CACHE_TTL_MINUTES = 5

# Canonical slot length: floor to STEP, never below MIN; DEFAULT when no catalog data exists
MIN_SLOT_LENGTH_MINUTES = 30
SLOT_LENGTH_STEP_MINUTES = 15
DEFAULT_SLOT_LENGTH_MINUTES = 30

# Capacity buckets: half-hour blocks, only for the provider where several staff can be free at once
CAPACITY_BLOCK_MINUTES = 30
CAPACITY_MIN_DURATION_MINUTES = 30
CAPACITY_SOURCE = "square"

# Primary bookable service; slots for it win dedup ties
DEFAULT_PRIMARY_SERVICE = "Haircut"

# Order in which providers are asked for their appointment-type catalog
SOURCE_PREFERENCE_ORDER = ("acuity", "square")

# Top-N most used service names averaged into the fallback price
FALLBACK_PRICE_TOP_N = 2

NO_SOURCES_CONNECTED = "No booking sources connected"

# Scheduler job IDs (must match ids used in main.py add_job)
AVAILABILITY_PULL_JOB_ID = "availability_daily_pull"
