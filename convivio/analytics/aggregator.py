from __future__ import annotations

from collections import Counter
from typing import Any


def compute_analytics(events: list[dict[str, Any]]) -> dict[str, Any]:
    requests = [e for e in events if e["type"] == "recommendation"]
    interactions = [e for e in events if e["type"] == "interaction"]
    total = len(requests)

    # Average response time
    times = [r["response_time_ms"] for r in requests if "response_time_ms" in r]
    avg_time = round(sum(times) / len(times), 1) if times else 0.0

    # Which scoring path served each request
    provider_counter: Counter[str] = Counter()
    for r in requests:
        if r.get("provider"):
            provider_counter[r["provider"]] += 1

    served = [r for r in requests if r.get("total_found")]
    avg_results = (
        round(sum(r.get("results_returned", 0) for r in served) / len(served), 1)
        if served else 0.0
    )
    empty = total - len(served)

    # Interaction counts by type
    interaction_counter: Counter[str] = Counter()
    for i in interactions:
        interaction_counter[i.get("interaction_type", "unknown")] += 1

    fallback = provider_counter.get("basic-distance", 0)

    return {
        "total_recommendation_requests": total,
        "avg_response_time_ms": avg_time,
        "provider_usage": dict(provider_counter),
        "fallback_rate": round(fallback / len(served) * 100, 1) if served else 0.0,
        "avg_results_returned": avg_results,
        "empty_results": empty,
        "total_interactions": len(interactions),
        "interactions_by_type": dict(interaction_counter),
    }
