"""Adapters binding the core ports to HTTP services and the filesystem."""
