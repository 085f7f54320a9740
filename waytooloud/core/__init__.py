"""Shared infrastructure (logging, task helpers) for WayTooLoud."""
