"""Brickvest - real-estate crowdfunding backend."""

__version__ = "0.1.0"
