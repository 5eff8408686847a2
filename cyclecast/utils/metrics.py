"""
Validation metrics for race predictions.

Compare a RacePredictionResult against the actual finishing order and check
how well probabilities are calibrated.
"""

from collections.abc import Sequence

import numpy as np
from scipy.stats import kendalltau, spearmanr

from cyclecast.types.prediction_types import RacePredictionResult

DEFAULT_CALIBRATION_BINS = (0.0, 0.05, 0.15, 0.3, 0.5, 1.0)


def brier_score(probabilities: Sequence[float], outcomes: Sequence[bool]) -> float:
    """Mean squared error of probabilities against 0/1 outcomes (lower is better)."""
    if len(probabilities) != len(outcomes):
        raise ValueError(
            f"probabilities and outcomes must have equal length, "
            f"got {len(probabilities)} and {len(outcomes)}"
        )
    if len(probabilities) == 0:
        return float("nan")

    probs = np.asarray(probabilities, dtype=float)
    actual = np.asarray(outcomes, dtype=float)
    return float(np.mean((probs - actual) ** 2))


def calibration_bins(
    pairs: Sequence[tuple[float, bool]],
    bins: Sequence[float] = DEFAULT_CALIBRATION_BINS,
) -> dict[str, dict[str, float]]:
    """
    Group (probability, outcome) pairs into probability bins.

    Returns mean predicted probability, observed frequency and count per
    non-empty bin. The last bin includes its upper edge.
    """
    result = {}
    for i in range(len(bins) - 1):
        low, high = bins[i], bins[i + 1]
        last = i == len(bins) - 2
        in_bin = [
            (p, hit) for p, hit in pairs if low <= p < high or (last and p == high)
        ]
        if not in_bin:
            continue
        result[f"{low:.2f}-{high:.2f}"] = {
            "predicted": float(np.mean([p for p, _ in in_bin])),
            "observed": sum(hit for _, hit in in_bin) / len(in_bin),
            "count": len(in_bin),
        }
    return result


def evaluate_predictions(
    result: RacePredictionResult, actual_order: Sequence[str]
) -> dict[str, float]:
    """
    Compare predictions with the actual finishing order (rider ids, winner first).

    Returns dict with winner_correct, top3/top10 overlap, spearman,
    kendall_tau, mae_positions and win_brier (when enough data exists).
    """
    predicted = [p.rider_id for p in result.predictions]
    metrics: dict[str, float] = {}

    if predicted and actual_order:
        metrics["winner_correct"] = 1.0 if predicted[0] == actual_order[0] else 0.0

    for n in (3, 10):
        if len(predicted) >= n and len(actual_order) >= n:
            overlap = len(set(predicted[:n]) & set(actual_order[:n]))
            metrics[f"top{n}_accuracy"] = overlap / n

    actual_positions = {rider_id: pos for pos, rider_id in enumerate(actual_order, start=1)}
    common = [p for p in result.predictions if p.rider_id in actual_positions]

    if len(common) >= 3:
        pred_positions = [p.predicted_position for p in common]
        true_positions = [actual_positions[p.rider_id] for p in common]

        rho, _ = spearmanr(pred_positions, true_positions)
        metrics["spearman"] = float(rho)

        tau, _ = kendalltau(pred_positions, true_positions)
        metrics["kendall_tau"] = float(tau)

        metrics["mae_positions"] = float(
            np.mean([abs(p - a) for p, a in zip(pred_positions, true_positions, strict=True)])
        )

    if common and actual_order:
        winner = actual_order[0]
        metrics["win_brier"] = brier_score(
            [p.win_probability for p in common], [p.rider_id == winner for p in common]
        )

    return metrics
