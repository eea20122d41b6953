"""Interview slot scheduling for a fixed pair of interviewers."""

__version__ = "0.1.0"
