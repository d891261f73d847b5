"""MediTimer: back-to-back meditation segments that survive suspension."""

__version__ = "0.1.0"
