from .stop_loss import FixedStopLoss, PercentStopLoss, TrailingPercentStopLoss
from .take_profit import PercentProfitTarget, RiskRewardProfitTarget

__all__ = [
    "FixedStopLoss",
    "PercentStopLoss",
    "TrailingPercentStopLoss",
    "PercentProfitTarget",
    "RiskRewardProfitTarget",
]
