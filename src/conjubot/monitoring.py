"""Monitoring configuration for the bot."""
from prometheus_client import Counter, start_http_server

# Quiz metrics
answers_submitted = Counter(
    "conjubot_answers_total",
    "Total number of answers submitted",
    ["outcome"],
)

items_mastered = Counter(
    "conjubot_items_mastered_total",
    "Total number of verb/tense/pronoun combinations mastered",
)

quiz_sessions = Counter(
    "conjubot_quiz_sessions_total",
    "Total number of quiz sessions started",
)

# Storage metrics
storage_errors = Counter(
    "conjubot_storage_errors_total",
    "Total number of mastery ledger storage errors",
    ["operation"],
)


def start_monitoring(port: int = 9090) -> None:
    """Start the Prometheus metrics server."""
    start_http_server(port)
