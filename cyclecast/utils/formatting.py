"""Display helpers for prediction probabilities."""

from cyclecast.utils.constants import PROBABILITY_TIERS


def format_probability(probability: float) -> str:
    """'12.3%' for probabilities of at least 1%, otherwise '<1%'."""
    if probability >= 0.01:
        return f"{probability * 100:.1f}%"
    return "<1%"


def probability_tier(probability: float) -> str:
    """Styling tier: high, medium, low or minimal."""
    for lower_bound, tier in PROBABILITY_TIERS:
        if probability >= lower_bound:
            return tier
    return "minimal"
