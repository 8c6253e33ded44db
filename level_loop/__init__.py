"""
level_loop
----------
Level loading/unloading lifecycle controller for a frame-driven game loop.
"""

__version__ = "0.3.0"
