"""Runnable publisher and subscriber entry points."""
