"""ReviewPilot - review request campaign engine."""
