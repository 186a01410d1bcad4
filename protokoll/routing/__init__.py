"""
Routing - Transcript Destination Selection

Scores a transcript against configured projects and decides where the
note is written.

Key Components:
- Classifier: Multi-signal confidence scoring of project routes
- Router: Conflict policy, default fallback and output path building
- RoutingSystem: Classifier + Router over a live, extendable config
- routing_metadata: Frontmatter-ready summary of a decision
"""

import logging

from ..common.context import EntityLookup
from .classifier import Classifier
from .metadata import routing_metadata
from .router import Router
from .types import (
    ClassificationResult,
    ClassificationSignal,
    ConflictResolution,
    ContextType,
    FilenameOption,
    FilesystemStructure,
    ProjectClassification,
    ProjectRoute,
    RouteDecision,
    RouteDestination,
    RoutingConfig,
    RoutingContext,
    SignalType,
)

logger = logging.getLogger("protokoll.routing")


class RoutingSystem:
    """
    Entry point for routing transcripts.

    Projects added and default routes replaced here are seen by the
    next call to route().
    """

    def __init__(self, config: RoutingConfig, context: EntityLookup):
        self._config = config
        self._classifier = Classifier(context)
        self._router = Router(config, self._classifier)

    @property
    def classifier(self) -> Classifier:
        return self._classifier

    def route(self, context: RoutingContext) -> RouteDecision:
        return self._router.route(context)

    def build_output_path(self, decision: RouteDecision, context: RoutingContext) -> str:
        return self._router.build_output_path(decision, context)

    def explain_decision(self, decision: RouteDecision) -> str:
        return self._router.explain_decision(decision)

    def add_project(self, project: ProjectRoute) -> None:
        self._config.projects.append(project)
        logger.info("Added project route %s", project.project_id)

    def update_default_route(self, destination: RouteDestination) -> None:
        self._config.default = destination
        logger.info("Default route set to %s", destination.path)

    def get_config(self) -> RoutingConfig:
        """Snapshot of the current config"""
        return self._config.model_copy(deep=True)


def create_routing(config: RoutingConfig, context: EntityLookup) -> RoutingSystem:
    """Create a RoutingSystem for a config and entity lookup"""
    return RoutingSystem(config, context)


__all__ = [
    "Classifier",
    "Router",
    "RoutingSystem",
    "create_routing",
    "routing_metadata",
    "ClassificationResult",
    "ClassificationSignal",
    "ConflictResolution",
    "ContextType",
    "FilenameOption",
    "FilesystemStructure",
    "ProjectClassification",
    "ProjectRoute",
    "RouteDecision",
    "RouteDestination",
    "RoutingConfig",
    "RoutingContext",
    "SignalType",
]
