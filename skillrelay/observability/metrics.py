"""Prometheus metrics for skillrelay.

Turn throughput and latency, skill delegation outcomes, state commit
conflicts and identity provider health.
"""

from prometheus_client import Counter, Histogram

# Turn metrics
TURNS_PROCESSED = Counter(
    "skillrelay_turns_processed_total",
    "Total number of turns processed",
    labelnames=["bot", "activity_type", "status"],
)

TURN_LATENCY = Histogram(
    "skillrelay_turn_latency_seconds",
    "Turn processing latency in seconds",
    labelnames=["bot"],
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)

# Delegation metrics
SKILL_DELEGATIONS = Counter(
    "skillrelay_skill_delegations_total",
    "Skill delegations by outcome",
    labelnames=["skill_id", "outcome"],
)

SKILL_FORWARD_LATENCY = Histogram(
    "skillrelay_skill_forward_latency_seconds",
    "Latency of a single forwarded activity",
    labelnames=["skill_id"],
    buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)

TOKEN_EXCHANGES = Counter(
    "skillrelay_token_exchanges_total",
    "SSO token exchanges attempted on behalf of skills",
    labelnames=["outcome"],
)

# State metrics
STATE_COMMIT_CONFLICTS = Counter(
    "skillrelay_state_commit_conflicts_total",
    "Optimistic write collisions on conversation state",
    labelnames=["bot", "resolution"],
)

# Identity metrics
IDENTITY_PROVIDER_ERRORS = Counter(
    "skillrelay_identity_provider_errors_total",
    "Failed calls to the identity provider",
    labelnames=["operation"],
)

# Prompt metrics
CHOICE_REPROMPTS = Counter(
    "skillrelay_choice_reprompts_total",
    "Choice prompts re-issued after an unrecognized answer",
    labelnames=["dialog_id"],
)
