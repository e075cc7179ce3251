"""Adapters connecting the core to HTTP, the OS and the host framework."""
