BOARD_SIZE = 6

# Cascade scoring. Each wave awards BASE_SCORE per cleared tile times the wave number.
BASE_SCORE = 120
POWER_PER_CLEARED_TILE = 0.05
MAX_POWER_CHARGE = 1.0

# Combo multiplier caps: swaps grow it by one up to MAX_COMBO, coop power by two up to MAX_POWER_COMBO.
MAX_COMBO = 5
MAX_POWER_COMBO = 6

# Coop power payout (requires a full charge).
COOP_POWER_SCORE = 750
COOP_POWER_FEATHERS = 5

# Boost tuning
POWER_SURGE_GAIN = 0.5
ROW_SWEEP_FEATHER_DIVISOR = 3
COOP_HAMMER_SCORE = 150
COOP_HAMMER_FEATHERS = 1
BOOST_INVENTORY_CAP = 5
BOOST_USAGE_HISTORY_LIMIT = 30
BOOST_STREAK_MILESTONE_DAYS = 3
BOOST_FEATHER_MILESTONE = 500

# Random board generation and shuffles give up after this many attempts.
BOARD_GENERATION_ATTEMPTS = 40
SHUFFLE_ATTEMPTS = 40

# Timing (seconds)
COUNTDOWN_INTERVAL = 1.0
HIGHLIGHT_CLEAR_DELAY = 0.35

# Level catalogue
LEVEL_COUNT = 40
LEVELS_PER_CHAPTER = 10

# Persistence keys
KEY_HAS_SEEN_ONBOARDING = "hasSeenOnboarding"
KEY_LEVEL_PROGRESS = "levelProgress"
KEY_AVAILABLE_BOOSTS = "availableBoosts"
KEY_BOOST_USAGE_HISTORY = "boost_usage_history"
KEY_BOOST_MILESTONES = "boost_milestones"
KEY_ACHIEVEMENTS = "achievements"
KEY_SETTINGS = "settings"
KEY_HAPTICS_ENABLED = "hapticsEnabled"
KEY_ANIMATIONS_ENABLED = "animationsEnabled"
