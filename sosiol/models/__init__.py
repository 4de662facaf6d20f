from sosiol.models.creator import Creator
from sosiol.models.tip import Tip, TipStatus

__all__ = [
    "Creator",
    "Tip",
    "TipStatus",
]
