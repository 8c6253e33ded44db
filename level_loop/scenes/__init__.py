"""
Scene-side collaborators of the level loop.
"""

from level_loop.scenes.overlay_presenter import OverlayPresenter

__all__ = ['OverlayPresenter']
