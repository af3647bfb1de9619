"""Transport feasibility and schedule propagation engine for multi-day trips."""

__version__ = "0.3.0"
