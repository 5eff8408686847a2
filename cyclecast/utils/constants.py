"""
Constants for the cyclecast prediction core.

Lookup tables and thresholds that are not tuning parameters live here;
tunable numbers are in config/default.yaml.
"""

# Race profile types
PROFILE_TYPES = ("flat", "hilly", "mountain", "tt", "cobbles")
DEFAULT_PROFILE = "hilly"

PROFILE_DISPLAY_NAMES = {
    "flat": "Flat",
    "hilly": "Hilly",
    "mountain": "Mountain",
    "tt": "Time Trial",
    "cobbles": "Cobbles",
}

# Climbing per km that separates flat / hilly / mountain profiles
FLAT_MAX_ELEVATION_PER_KM = 10.0
HILLY_MAX_ELEVATION_PER_KM = 20.0

# Weight multipliers for UCI race categories (form input)
RACE_CATEGORY_WEIGHTS = {
    "WorldTour": 1.0,
    "2.UWT": 1.0,
    "1.UWT": 1.0,
    "2.Pro": 0.85,
    "1.Pro": 0.85,
    "2.1": 0.7,
    "1.1": 0.7,
    "2.2": 0.5,
    "1.2": 0.5,
    "National Championship": 0.6,
    "Grand Tour": 1.0,
    "Monument": 1.0,
}
DEFAULT_RACE_WEIGHT = 0.5

# Form performance score by finishing position: (max position, score)
FORM_POSITION_SCORES = (
    (1, 1.0),
    (2, 0.8),
    (3, 0.65),
    (5, 0.5),
    (10, 0.35),
    (20, 0.2),
)

# Profile affinity score by finishing position: (max position, score)
AFFINITY_POSITION_SCORES = (
    (1, 1.0),
    (2, 0.95),
    (3, 0.9),
    (5, 0.85),
    (10, 0.75),
    (20, 0.6),
)
AFFINITY_DNF_SCORE = 0.1  # small credit for starting
AFFINITY_TAIL_MIN = 0.1
AFFINITY_TAIL_RANGE = 0.4

# Form description bands (lower bound, label), checked top-down
FORM_DESCRIPTION_BANDS = (
    (0.6, "Excellent form"),
    (0.3, "Good form"),
    (0.0, "Average form"),
    (-0.3, "Below average form"),
)
FORM_DESCRIPTION_FLOOR = "Poor form"

# Confidence adjustments
CONFIDENCE_BASE = 0.5
CONFIDENCE_FORM_RACES = ((5, 0.15), (3, 0.10))
CONFIDENCE_NO_FORM_PENALTY = -0.20
CONFIDENCE_PROFILE_SAMPLES = ((10, 0.15), (5, 0.10))
CONFIDENCE_NO_PROFILE_PENALTY = -0.15
CONFIDENCE_LOW_SIGMA = 100.0
CONFIDENCE_LOW_SIGMA_BONUS = 0.10
CONFIDENCE_HIGH_SIGMA = 250.0
CONFIDENCE_HIGH_SIGMA_PENALTY = -0.10
CONFIDENCE_RUMOUR_TIPS = 3
CONFIDENCE_RUMOUR_BONUS = 0.05

# Reasoning thresholds
REASON_FORM_EXCELLENT = 1.1
REASON_FORM_GOOD = 1.05
REASON_FORM_POOR = 0.9
REASON_FORM_BELOW_AVERAGE = 0.95
REASON_PROFILE_STRONG = 1.2
REASON_PROFILE_GOOD = 1.1
REASON_PROFILE_WEAK = 0.85
REASON_RUMOUR_MODIFIER = 0.02
REASON_RUMOUR_MIN_TIPS = 2
REASON_WIN_FAVOURITE = 0.2
REASON_WIN_CONTENDER = 0.1
REASON_FALLBACK = "Steady performer with average expectations for this race."

# Probability display tiers (lower bound, tier)
PROBABILITY_TIERS = ((0.15, "high"), (0.05, "medium"), (0.01, "low"))
