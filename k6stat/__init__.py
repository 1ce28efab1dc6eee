"""k6-stat: load-test telemetry inspection, ranking and comparison."""

__version__ = "0.1.0"
