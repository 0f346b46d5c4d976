"""Source-agnostic metadata collection engine."""

__version__ = "0.1.0"
