"""Job orchestration: the expansion pipeline, its event sinks and per-job state."""
