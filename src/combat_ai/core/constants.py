"""Rules constants shared across the combat AI core.

Tables keyed by enums live beside the code that consumes them; this module
holds the scalar numbers that several modules agree on.
"""

from __future__ import annotations

# =============================================================================
# Distances
# =============================================================================

MELEE_RANGE_FT = 5.0
"""Reach within which strikes and grapple attempts are possible."""

CLOSE_RANGE_FT = 30.0
"""Beyond this, an intelligent enemy considers a flanking sprint."""

FEET_PER_CELL = 5.0
"""Grid cell size used to convert sprint distance into cells."""

SPRINT_FEET_PER_SPEED = 60
"""Sprint distance is Spd times this many feet per melee round."""

# =============================================================================
# Dice
# =============================================================================

DEFAULT_DIE_SIDES = 20
"""Resolution die. Critical and escape thresholds are derived from it."""

# =============================================================================
# Decision Scores
# =============================================================================

FORCED_REST_SCORE = 5.0
"""Plan score when a collapsed combatant must rest."""

VOLUNTARY_REST_SCORE = 4.0
"""Plan score when fatigue level is high enough to choose rest."""

RETREAT_SCORE = 4.5
"""Plan score for a sprint away at low health."""

SPRINT_TO_TARGET_SCORE = 3.8
"""Plan score for closing to melee by sprinting."""

PURSUIT_SCORE = 3.5
"""Plan score for chasing a fleeing target."""

FLANK_SCORE = 3.2
"""Plan score for a flanking sprint while allies hold the line."""

INTERCEPT_SCORE = 4.0
"""Plan score for a bodyguard intercepting a threat to its charge."""

REMOTE_PLAN_SCORE = 5.0
"""Score stamped on plans chosen by the remote oracle."""

DEFAULT_PLAN_SCORE = 1.0
"""Score of the Defend/Hold fallback plan."""

STRATEGIC_SCORE_THRESHOLD = 2.0
"""Plans scoring above this are flagged strategic."""

CLOSE_DISTANCE_MULTIPLIER = 1.5
"""Scale applied to a close-distance weapon recommendation score."""

LOW_HEALTH_RATIO = 0.3
"""Below this HP ratio defensive actions gain weight and retreat triggers."""

HIGH_HEALTH_RATIO = 0.8
"""Above this HP ratio offensive actions gain weight."""

RANGED_PRESSURE_HEALTH = 0.5
"""Minimum HP ratio to charge an enemy that is shooting at us."""

FLANK_HEALTH = 0.6
"""Minimum HP ratio for a flanking sprint."""

FLANK_MIN_IQ = 10
"""Minimum IQ for an enemy to attempt flanking."""

# =============================================================================
# Stamina
# =============================================================================

STAMINA_PER_PE = 2
"""Maximum stamina is PE times this value."""

MINOR_FATIGUE_THRESHOLD = -5
MODERATE_FATIGUE_THRESHOLD = -10
SEVERE_FATIGUE_THRESHOLD = -15
COLLAPSE_THRESHOLD = -16
"""Stamina at or below these values enters the matching fatigue band."""

STAMINA_FLOOR = -20
"""No exertion may push stamina below this value."""

HEAVY_ARMOR_WEIGHT = 40
"""Armor heavier than this adds an encumbrance surcharge."""

HEAVY_LOAD_WEIGHT = 60
"""Carried weight above this adds an encumbrance surcharge."""

ENCUMBRANCE_SURCHARGE = 0.5
"""Extra stamina per round for each encumbrance condition."""

MEN_AT_ARMS_ARMOR_REFUND = 0.25
"""Portion of the armor surcharge refunded to trained soldiers."""

MEN_AT_ARMS_OCCS = frozenset({"knight", "paladin", "soldier", "mercenary", "men-at-arms"})
"""O.C.C.s trained to fight in heavy armor."""

SHORT_REST_ROUNDS_PER_MINUTE = 4
"""Melee rounds per minute counted by a short rest."""

LANDING_STAMINA_RATIO = 0.2
"""Fliers should land when stamina drops to this share of maximum."""

LANDING_STAMINA_FLOOR = 4
"""Fliers should always land at or below this much stamina."""

# =============================================================================
# Grappling
# =============================================================================

AUTO_GRAPPLE_PS_DIFFERENCE = 10
"""PS lead at which a grapple succeeds unless the defender rolls maximum."""

TAKEDOWN_TARGET = 15
"""Total needed on a takedown roll."""

TAKEDOWN_WEIGHT_FACTOR = 2
"""A takedown requires PS of at least this multiple of defender weight."""

GROUND_STRIKE_TARGET = 12
"""Total needed for a normal ground strike hit."""

DEFAULT_WEIGHT = 150
"""Weight assumed for combatants that do not declare one."""

REVERSAL_ADVANTAGE = 2
"""One-time bonus earned by a successful reversal."""

# =============================================================================
# Weapons
# =============================================================================

SHORT_WEAPON_MAX_LENGTH = 2
"""Weapons this long or shorter count as short."""

LONG_WEAPON_MIN_LENGTH = 6
"""Weapons this long or longer count as long."""

TIGHT_QUARTERS_FT = 3
"""Distance under which long weapons become unwieldy."""

MAX_REACH_BONUS = 3
"""Cap on the strike bonus earned from reach advantage."""

FIRST_STRIKE_REACH = 2
"""Reach advantage required for a first-round first strike."""


__all__ = [
    "MELEE_RANGE_FT",
    "CLOSE_RANGE_FT",
    "FEET_PER_CELL",
    "SPRINT_FEET_PER_SPEED",
    "DEFAULT_DIE_SIDES",
    "FORCED_REST_SCORE",
    "VOLUNTARY_REST_SCORE",
    "RETREAT_SCORE",
    "SPRINT_TO_TARGET_SCORE",
    "PURSUIT_SCORE",
    "FLANK_SCORE",
    "INTERCEPT_SCORE",
    "REMOTE_PLAN_SCORE",
    "DEFAULT_PLAN_SCORE",
    "STRATEGIC_SCORE_THRESHOLD",
    "CLOSE_DISTANCE_MULTIPLIER",
    "LOW_HEALTH_RATIO",
    "HIGH_HEALTH_RATIO",
    "RANGED_PRESSURE_HEALTH",
    "FLANK_HEALTH",
    "FLANK_MIN_IQ",
    "STAMINA_PER_PE",
    "MINOR_FATIGUE_THRESHOLD",
    "MODERATE_FATIGUE_THRESHOLD",
    "SEVERE_FATIGUE_THRESHOLD",
    "COLLAPSE_THRESHOLD",
    "STAMINA_FLOOR",
    "HEAVY_ARMOR_WEIGHT",
    "HEAVY_LOAD_WEIGHT",
    "ENCUMBRANCE_SURCHARGE",
    "MEN_AT_ARMS_ARMOR_REFUND",
    "MEN_AT_ARMS_OCCS",
    "SHORT_REST_ROUNDS_PER_MINUTE",
    "LANDING_STAMINA_RATIO",
    "LANDING_STAMINA_FLOOR",
    "AUTO_GRAPPLE_PS_DIFFERENCE",
    "TAKEDOWN_TARGET",
    "TAKEDOWN_WEIGHT_FACTOR",
    "GROUND_STRIKE_TARGET",
    "DEFAULT_WEIGHT",
    "REVERSAL_ADVANTAGE",
    "SHORT_WEAPON_MAX_LENGTH",
    "LONG_WEAPON_MIN_LENGTH",
    "TIGHT_QUARTERS_FT",
    "MAX_REACH_BONUS",
    "FIRST_STRIKE_REACH",
]
