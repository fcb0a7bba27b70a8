"""UI modules for the take continuity logger."""

from .widgets import SlotInput
from .main_window import LogSheetWindow

__all__ = [
    'SlotInput',
    'LogSheetWindow',
]
