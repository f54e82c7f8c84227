"""Personal task tracker with Earliest-Deadline-First ordering and an on-time score."""

__version__ = "0.1.0"
