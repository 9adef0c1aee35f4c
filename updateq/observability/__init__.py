"""Logging, in-process telemetry and pipeline event sinks."""
