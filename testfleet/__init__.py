"""Run per-language integration test scripts across many targets with bounded parallelism."""
