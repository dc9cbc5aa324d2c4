"""Position sizing: Kelly fraction and trade-plan payoff ratio."""

import math

# Win rate assumed when a trade plan carries no model probability
DEFAULT_WIN_PROB = 0.55


def kelly_criterion(win_prob: float, win_loss_ratio: float) -> float:
    """Kelly fraction ``p - (1 - p) / r``, never negative.

    A non-positive payoff ratio (or non-finite input) sizes to 0.
    """
    if not (math.isfinite(win_prob) and math.isfinite(win_loss_ratio)):
        return 0.0
    if win_loss_ratio <= 0:
        return 0.0
    return max(0.0, win_prob - (1.0 - win_prob) / win_loss_ratio)


def reward_risk_ratio(entry: float, stop_loss: float, take_profit: float) -> float:
    """``|take_profit - entry| / |entry - stop_loss|``; zero risk gives 0."""
    risk = abs(entry - stop_loss)
    if risk == 0 or not math.isfinite(risk):
        return 0.0
    return abs(take_profit - entry) / risk


def kelly_suggestion(
    entry: float,
    stop_loss: float,
    take_profit: float,
    win_prob: float = DEFAULT_WIN_PROB,
) -> float:
    """Kelly fraction for a trade plan defined by entry, stop and target."""
    return kelly_criterion(win_prob, reward_risk_ratio(entry, stop_loss, take_profit))
