"""
groupslots - collect group availability and visualize overlapping time slots.
"""

__version__ = "0.1.0"
