"""VolleyScore - volleyball scoreboard and team rotation engine."""

__version__ = "0.1.0"
