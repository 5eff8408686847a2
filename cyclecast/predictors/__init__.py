"""
Race predictors.

- race.py - PredictionEngine: final scores, confidence, reasoning, ranking
- monte_carlo.py - shared-batch finishing probability simulation
"""

from .monte_carlo import simulate_finish_probabilities
from .race import PredictionEngine, predictions_to_frame, top_predictions

__all__ = [
    "PredictionEngine",
    "predictions_to_frame",
    "simulate_finish_probabilities",
    "top_predictions",
]
