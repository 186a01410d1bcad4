"""
Router

Turns ranked classification results into a routing decision and
builds the output path for a routed transcript: a dated directory
under the destination plus a filename made of date, time and subject
parts that does not repeat what the directory already says.
"""

import logging
import os
import re
from datetime import datetime
from pathlib import Path
from typing import Optional, Sequence

from .classifier import Classifier
from .types import (
    ConflictResolution,
    FilenameOption,
    FilesystemStructure,
    RouteDecision,
    RoutingConfig,
    RoutingContext,
)

logger = logging.getLogger("protokoll.routing.router")

# Results above this are strong enough to count as a conflict
HIGH_CONFIDENCE_THRESHOLD = 0.5

DEFAULT_CONFIDENCE = 1.0
DEFAULT_REASONING = "No project matches found, using default routing"

SUBJECT_PREFIX_RE = re.compile(
    r"^(this is a note about|note about|regarding|re:|meeting notes?:?)",
    re.IGNORECASE,
)
SENTENCE_SPLIT_RE = re.compile(r"[.!?]")
MAX_SUBJECT_SLUG = 40


class Router:
    """
    Selects a destination for a transcript.

    The best classification result wins. When more than one result is
    above the high-confidence threshold and the conflict policy is not
    "primary", the runners-up are attached as alternate matches so a
    caller can ask for disambiguation.
    """

    def __init__(self, config: RoutingConfig, classifier: Classifier):
        """
        Initialize router.

        Args:
            config: Routing policy; read on every call, so later changes apply
            classifier: Classifier used to rank project routes
        """
        self._config = config
        self._classifier = classifier

    @property
    def config(self) -> RoutingConfig:
        return self._config

    def route(self, context: RoutingContext) -> RouteDecision:
        """
        Decide where a transcript goes.

        Args:
            context: Transcript text, audio date and source file

        Returns:
            RouteDecision; project_id is None for the default route
        """
        config = self._config
        results = self._classifier.classify(context, config.projects)

        if not results:
            logger.debug("No project matched %s, using default route", context.source_file)
            return RouteDecision(
                project_id=None,
                destination=config.default,
                confidence=DEFAULT_CONFIDENCE,
                signals=[],
                reasoning=DEFAULT_REASONING,
            )

        best_match = results[0]
        matched_project = next(p for p in config.projects if p.project_id == best_match.project_id)

        high_confidence_matches = [r for r in results if r.confidence > HIGH_CONFIDENCE_THRESHOLD]

        alternate_matches = None
        if (
            len(high_confidence_matches) > 1
            and config.conflict_resolution != ConflictResolution.PRIMARY
        ):
            alternate_matches = high_confidence_matches[1:]
            logger.info(
                "Routing conflict for %s: %s wins over %s",
                context.source_file,
                best_match.project_id,
                ", ".join(r.project_id for r in alternate_matches),
            )

        logger.debug(
            "Routing decision: project=%s, confidence=%.2f",
            best_match.project_id, best_match.confidence,
        )

        return RouteDecision(
            project_id=best_match.project_id,
            destination=matched_project.destination,
            confidence=best_match.confidence,
            signals=best_match.signals,
            reasoning=best_match.reasoning,
            auto_tags=matched_project.auto_tags,
            alternate_matches=alternate_matches,
        )

    def build_output_path(self, decision: RouteDecision, context: RoutingContext) -> str:
        """
        Build the file path for a routed transcript.

        Args:
            decision: Routing decision with destination settings
            context: Transcript context (audio date, text, source file)

        Returns:
            Path ending in ".md"
        """
        destination = decision.destination
        base_path = expand_path(destination.path)
        directory = build_directory_path(base_path, destination.structure, context.audio_date)
        filename = build_filename(destination.filename_options, context, destination.structure)

        return os.path.normpath(os.path.join(directory, filename + ".md"))

    def explain_decision(self, decision: RouteDecision) -> str:
        """
        Generate human-readable explanation of a decision.

        Args:
            decision: Decision to explain

        Returns:
            Explanation string
        """
        if decision.is_default:
            return (
                f"Default route: {decision.destination.path}\n"
                f"  Reason: {decision.reasoning}"
            )

        lines = [
            f"Routed to {decision.project_id} (confidence: {decision.confidence:.2f})",
            f"  Destination: {decision.destination.path}",
            f"  Reason: {decision.reasoning}",
        ]
        if decision.auto_tags:
            lines.append(f"  Tags: {', '.join(decision.auto_tags)}")

        if decision.alternate_matches:
            lines.append("  Also matched:")
            for alt in decision.alternate_matches:
                lines.append(f"    - {alt.project_id} ({alt.confidence:.2f}): {alt.reasoning}")

        return "\n".join(lines)


def expand_path(path: str) -> str:
    """Expand a leading ~ to the user's home directory"""
    if path.startswith("~"):
        return os.path.join(str(Path.home()), path[1:].lstrip("/\\"))
    return path


def build_directory_path(base_path: str, structure: FilesystemStructure, date: datetime) -> str:
    """Append year/month/day directories; month and day are not zero-padded"""
    year = str(date.year)
    month = str(date.month)
    day = str(date.day)

    if structure == FilesystemStructure.YEAR:
        return os.path.join(base_path, year)
    if structure == FilesystemStructure.MONTH:
        return os.path.join(base_path, year, month)
    if structure == FilesystemStructure.DAY:
        return os.path.join(base_path, year, month, day)
    return base_path


def build_filename(
    options: Sequence[FilenameOption],
    context: RoutingContext,
    structure: FilesystemStructure,
) -> str:
    """
    Build the filename stem from the configured options.

    The date part only carries what the directory structure leaves out:
    nothing for day, DD for month, MM-DD for year and YYMMDD for none.
    """
    date = context.audio_date
    parts = []

    for option in options:
        if option == FilenameOption.DATE:
            date_part = _date_part(date, structure)
            if date_part:
                parts.append(date_part)
        elif option == FilenameOption.TIME:
            parts.append(f"{date.hour:02d}{date.minute:02d}")
        elif option == FilenameOption.SUBJECT:
            subject = extract_subject(context.transcript_text, context.source_file)
            if subject:
                parts.append(subject)

    return re.sub(r"--+", "-", "-".join(parts))


def _date_part(date: datetime, structure: FilesystemStructure) -> Optional[str]:
    if structure == FilesystemStructure.DAY:
        return None
    if structure == FilesystemStructure.MONTH:
        return f"{date.day:02d}"
    if structure == FilesystemStructure.YEAR:
        return f"{date.month:02d}-{date.day:02d}"
    return f"{date.year % 100:02d}{date.month:02d}{date.day:02d}"


def extract_subject(text: str, source_file: str) -> str:
    """
    Derive a filename subject from the first sentence of a transcript.

    Falls back to the source filename when the cleaned sentence is too
    short, too long, or slugifies to nothing.
    """
    first_sentence = SENTENCE_SPLIT_RE.split(text)[0].strip()
    cleaned = SUBJECT_PREFIX_RE.sub("", first_sentence).strip()

    if 3 < len(cleaned) < 50:
        subject = slugify(cleaned)
        if subject:
            return subject

    stem = os.path.splitext(os.path.basename(source_file))[0]
    return re.sub(r"[^a-zA-Z0-9-]", "-", stem).lower()


def slugify(text: str) -> str:
    """Lowercase, dash-separated slug of at most 40 characters"""
    slug = re.sub(r"[^a-z0-9]+", "-", text.lower())
    slug = re.sub(r"--+", "-", slug)
    slug = slug.strip("-")
    return slug[:MAX_SUBJECT_SLUG]
