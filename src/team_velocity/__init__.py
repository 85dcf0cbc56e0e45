"""team-velocity: team performance metrics derived from GitHub activity."""

__version__ = "0.1.0"
