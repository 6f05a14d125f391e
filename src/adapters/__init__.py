"""Adapters: HTTP client for the minification API, filesystem host, console notifier."""
