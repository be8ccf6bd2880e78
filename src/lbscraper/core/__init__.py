"""Configuration and shared errors."""
