"""
Margin calculations.

Pure functions; the reconciliation store calls these whenever price,
cost or threshold change.
"""

from models.reconciliation import MarginStatus


def calculate_margin(price: float, cost: float) -> float:
    """
    Markup of price over cost, in percent.

    Formula: (price / cost) * 100 - 100. Zero when cost <= 0.
    """
    if cost <= 0:
        return 0.0
    return (price / cost) * 100 - 100


def get_margin_status(margin: float, threshold: float) -> MarginStatus:
    """
    Classify a margin against the "good" threshold.

    negative below 0, medium below threshold, good otherwise.
    """
    if margin < 0:
        return MarginStatus.NEGATIVE
    if margin < threshold:
        return MarginStatus.MEDIUM
    return MarginStatus.GOOD
