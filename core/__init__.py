"""Core types, key scheme, configuration and runner for the design benchmark."""
