"""
Routing Metadata

Renders a RouteDecision into plain data that callers store in the
transcript's frontmatter.
"""

from typing import Any, Dict, List

from .types import ClassificationSignal, RouteDecision


def _format_signals(signals: List[ClassificationSignal]) -> List[Dict[str, Any]]:
    return [
        {"type": s.type.value, "value": s.value, "weight": s.weight}
        for s in signals
    ]


def routing_metadata(decision: RouteDecision) -> Dict[str, Any]:
    """
    Build the routing section of a transcript's frontmatter.

    Args:
        decision: Decision returned by the router

    Returns:
        Dict with destination, confidence, signals and reasoning; project,
        tags and alternates are added only when present
    """
    metadata: Dict[str, Any] = {
        "destination": decision.destination.path,
        "confidence": decision.confidence,
        "signals": _format_signals(decision.signals),
        "reasoning": decision.reasoning,
    }

    if decision.project_id is not None:
        metadata["project"] = decision.project_id
    if decision.auto_tags:
        metadata["tags"] = list(decision.auto_tags)
    if decision.alternate_matches:
        metadata["alternates"] = [
            {"project": alt.project_id, "confidence": alt.confidence}
            for alt in decision.alternate_matches
        ]

    return metadata
