"""Loudness monitoring and limit alerting."""
