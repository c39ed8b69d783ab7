"""Shared failure code constants for pipeline error handling."""

CAPACITY_EXCEEDED = "capacity_exceeded"
CHALLENGE_DETECTED = "challenge_detected"
CONTROL_NOT_FOUND = "control_not_found"
NO_DATA_FOUND = "no_data_found"
NETWORK_TIMEOUT = "network_timeout"
UNEXPECTED_FAILURE = "unexpected_failure"

# Pipeline finished but the target state was unreachable; answered with a generated idea.
FALLBACK_FAILURES = frozenset(
    {
        CONTROL_NOT_FOUND,
        NO_DATA_FOUND,
    }
)

RETRY_LATER_FAILURES = frozenset(
    {
        CAPACITY_EXCEEDED,
        NETWORK_TIMEOUT,
    }
)

FATAL_FAILURES = frozenset(
    {
        CHALLENGE_DETECTED,
        UNEXPECTED_FAILURE,
    }
)
