"""Address route planning service: normalize, geocode, optimize and share driving routes."""

__version__ = "0.1.0"
