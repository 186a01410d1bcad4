"""
Transcript Classifier

Multi-signal scoring of candidate project routes. Each route collects
evidence from explicit phrases, associated people and companies,
topics and the inferred context type; the evidence is folded into a
single confidence with diminishing returns for later signals.
"""

import logging
from typing import Callable, Iterable, List, Optional, Sequence, TypeVar

import numpy as np

from ..common.context import Company, EntityLookup, Person
from .types import (
    ClassificationResult,
    ClassificationSignal,
    ContextType,
    ProjectRoute,
    RoutingContext,
    SignalType,
)

logger = logging.getLogger("protokoll.routing.classifier")

EXPLICIT_PHRASE_WEIGHT = 0.9
ASSOCIATED_PERSON_WEIGHT = 0.6
ASSOCIATED_COMPANY_WEIGHT = 0.5
TOPIC_WEIGHT = 0.3
CONTEXT_TYPE_WEIGHT = 0.2

POSITION_DECAY = 0.3
MAX_CONFIDENCE = 0.99

WORK_INDICATORS = ("meeting", "project", "deadline", "team", "client", "report")
PERSONAL_INDICATORS = ("family", "weekend", "vacation", "hobby", "friend")

E = TypeVar("E", Person, Company)


def _person_names(person: Person) -> List[str]:
    return [person.name, *person.sounds_like]


def _company_names(company: Company) -> List[str]:
    names = [company.name]
    if company.full_name:
        names.append(company.full_name)
    return names + list(company.sounds_like)


def find_mentioned(
    text: str,
    entities: Iterable[E],
    names_of: Callable[[E], List[str]],
) -> List[str]:
    """
    Return ids of entities whose name or phonetic variant appears in text.

    Args:
        text: Lowercased transcript text
        entities: People or companies to scan
        names_of: Candidate spellings of an entity, in match order

    Returns:
        Entity ids in scan order
    """
    found = []
    for entity in entities:
        for candidate in names_of(entity):
            if candidate and candidate.lower() in text:
                found.append(entity.id)
                break
    return found


def infer_context_type(text: str) -> ContextType:
    """Guess work vs personal from indicator words in lowercased text"""
    work_score = sum(1 for word in WORK_INDICATORS if word in text)
    personal_score = sum(1 for word in PERSONAL_INDICATORS if word in text)

    if work_score > personal_score + 1:
        return ContextType.WORK
    if personal_score > work_score + 1:
        return ContextType.PERSONAL
    return ContextType.MIXED


def build_reasoning(signals: Sequence[ClassificationSignal]) -> str:
    """Human-readable explanation of a route's signals"""
    parts = []
    for signal in signals:
        if signal.type == SignalType.EXPLICIT_PHRASE:
            parts.append(f'explicit phrase: "{signal.value}"')
        elif signal.type == SignalType.ASSOCIATED_PERSON:
            parts.append(f"mentioned {signal.value} (associated)")
        elif signal.type == SignalType.ASSOCIATED_COMPANY:
            parts.append(f"mentioned {signal.value} (associated company)")
        elif signal.type == SignalType.TOPIC:
            parts.append(f"topic: {signal.value}")
        elif signal.type == SignalType.CONTEXT_TYPE:
            parts.append(f"context: {signal.value}")
    return ", ".join(parts)


class Classifier:
    """
    Scores project routes against a transcript.

    Algorithm (per active route):
    1. Collect signals in fixed order: explicit phrases, associated
       people, associated companies, topics, context type
    2. Skip routes with no signals
    3. Confidence = position-weighted average of signal weights, capped at 0.99
    4. Sort results by confidence, keeping route order on ties

    Matching is case-insensitive substring containment.
    """

    def __init__(self, context: EntityLookup):
        """
        Initialize classifier.

        Args:
            context: Entity lookup for people and companies
        """
        self._context = context

    def classify(
        self,
        routing_context: RoutingContext,
        routes: Sequence[ProjectRoute],
    ) -> List[ClassificationResult]:
        """
        Rank routes for a transcript.

        Args:
            routing_context: Transcript text and detection hints
            routes: Candidate routes; inactive ones are ignored

        Returns:
            Results for routes with at least one signal, best first
        """
        text = routing_context.transcript_text.lower()

        people_in_text = routing_context.detected_people
        if people_in_text is None:
            people_in_text = find_mentioned(text, self._context.get_all_people(), _person_names)

        companies_in_text = routing_context.detected_companies
        if companies_in_text is None:
            companies_in_text = find_mentioned(text, self._context.get_all_companies(), _company_names)

        inferred_context = infer_context_type(text)

        results = []
        for route in routes:
            if not route.active:
                continue

            signals = self._collect_signals(
                text, route, people_in_text, companies_in_text, inferred_context
            )
            if not signals:
                continue

            confidence = self.calculate_confidence(signals)
            logger.debug(
                "Route %s matched %d signal(s), confidence %.2f",
                route.project_id, len(signals), confidence,
            )
            results.append(ClassificationResult(
                project_id=route.project_id,
                confidence=confidence,
                signals=signals,
                reasoning=build_reasoning(signals),
            ))

        # sorted() is stable, equal confidences keep route order
        return sorted(results, key=lambda r: r.confidence, reverse=True)

    def calculate_confidence(self, signals: Sequence[ClassificationSignal]) -> float:
        """
        Fold signals into one confidence score.

        Signal i contributes with factor 1 / (1 + 0.3 * i), so the order
        signals were emitted in matters. The result never exceeds 0.99.

        Args:
            signals: Signals in emission order

        Returns:
            Confidence in [0, 0.99]
        """
        if not signals:
            return 0.0

        weights = np.array([s.weight for s in signals], dtype=float)
        position_factors = 1.0 / (1.0 + np.arange(len(signals)) * POSITION_DECAY)

        weighted_sum = float(np.dot(weights, position_factors))
        total_factor = float(position_factors.sum())

        return min(weighted_sum / max(total_factor, 1.0), MAX_CONFIDENCE)

    def _collect_signals(
        self,
        text: str,
        route: ProjectRoute,
        people_in_text: Sequence[str],
        companies_in_text: Sequence[str],
        inferred_context: ContextType,
    ) -> List[ClassificationSignal]:
        classification = route.classification
        signals = []

        for phrase in classification.explicit_phrases:
            if phrase.lower() in text:
                signals.append(ClassificationSignal(
                    type=SignalType.EXPLICIT_PHRASE,
                    value=phrase,
                    weight=EXPLICIT_PHRASE_WEIGHT,
                ))

        for person_id in classification.associated_people:
            if person_id in people_in_text:
                signals.append(ClassificationSignal(
                    type=SignalType.ASSOCIATED_PERSON,
                    value=self._display_name(self._context.get_person(person_id), person_id),
                    weight=ASSOCIATED_PERSON_WEIGHT,
                ))

        for company_id in classification.associated_companies:
            if company_id in companies_in_text:
                signals.append(ClassificationSignal(
                    type=SignalType.ASSOCIATED_COMPANY,
                    value=self._display_name(self._context.get_company(company_id), company_id),
                    weight=ASSOCIATED_COMPANY_WEIGHT,
                ))

        for topic in classification.topics:
            if topic.lower() in text:
                signals.append(ClassificationSignal(
                    type=SignalType.TOPIC,
                    value=topic,
                    weight=TOPIC_WEIGHT,
                ))

        # Weak signal, mostly useful for disambiguation
        if inferred_context == classification.context_type:
            signals.append(ClassificationSignal(
                type=SignalType.CONTEXT_TYPE,
                value=classification.context_type.value,
                weight=CONTEXT_TYPE_WEIGHT,
            ))

        return signals

    @staticmethod
    def _display_name(entity: Optional[object], fallback: str) -> str:
        name = getattr(entity, "name", None)
        return name if name else fallback
