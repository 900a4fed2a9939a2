"""srcpilot - keep source packages cloned, built and installed."""

__version__ = "0.1.0"
