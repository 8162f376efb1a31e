"""Diff-review pipeline: ingestion, metadata, engine invocation, validation and the gate decision."""
