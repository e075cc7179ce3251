"""Core domain: models, ports, encoders and the emit/record operations."""
