"""Helpers shared by the application factory and every plugin."""
