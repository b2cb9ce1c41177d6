"""Load testing via Apache Bench."""

from .apache_bench import (
    LoadTestError,
    LoadTestResult,
    build_ab_command,
    parse_ab_output,
    run_load_test,
)

__all__ = [
    "LoadTestError",
    "LoadTestResult",
    "build_ab_command",
    "parse_ab_output",
    "run_load_test",
]
