"""Core helpers shared by the specs and runtime packages."""
