"""Gateway implementations for external object store and stream services."""
