"""Core of the minifier: domain, interfaces, configuration and pipeline services."""
