"""Status panel: keeps one published display artifact in sync with the slots."""

from .controller import PanelController
from .surface import DisplaySurface

__all__ = ["DisplaySurface", "PanelController"]
