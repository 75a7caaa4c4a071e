"""KeyScreen desktop app and command line."""
