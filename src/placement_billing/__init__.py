"""Monthly billing generation for worker deployments."""

__version__ = "0.1.0"
