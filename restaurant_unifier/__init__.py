"""
Unifies Toast, DoorDash and Square exports into one canonical restaurant dataset.
"""

__version__ = "1.0.0"
