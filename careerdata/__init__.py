"""Career data merge and AI resilience classification engine."""

__version__ = "2.0.0"
