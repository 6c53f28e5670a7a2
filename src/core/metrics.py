"""
Prometheus metrics for the execution service

Exposed through the /metrics ASGI app mounted in main.py.
"""

from prometheus_client import Counter, Histogram

EXECUTIONS = Counter(
    "sandbox_executions_total",
    "Execution requests by action and outcome",
    ["action", "outcome"],
)

EXECUTION_DURATION = Histogram(
    "sandbox_execution_duration_seconds",
    "End-to-end request duration including provisioning and teardown",
    ["action"],
    buckets=(0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 120.0),
)

DEPENDENCY_INSTALL_FAILURES = Counter(
    "sandbox_dependency_install_failures_total",
    "Manifest installs that exited non-zero",
    ["language"],
)

TEARDOWN_FAILURES = Counter(
    "sandbox_teardown_failures_total",
    "Environments whose destroy call failed",
    ["provider"],
)
