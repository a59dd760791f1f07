"""Persistence layer for the plugin marketplace."""
