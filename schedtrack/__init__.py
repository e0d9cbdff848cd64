"""SchedTrack - estimating schedule import, diff tracking and triage."""

__version__ = "1.0.0"
