"""
Configuration Management for Protokoll

Loads configuration from ~/.protokoll/config.json and environment variables,
and turns it into the RoutingConfig used by the routing system.
"""

import os
import json
import logging
from pathlib import Path
from dataclasses import dataclass, field
from typing import List, Optional

from dotenv import load_dotenv

from ..routing.types import (
    ConflictResolution,
    FilenameOption,
    FilesystemStructure,
    ProjectRoute,
    RouteDestination,
    RoutingConfig,
)
from .context import ContextStore

logger = logging.getLogger("protokoll.common.config")

# Default config paths
CONFIG_DIR = Path.home() / ".protokoll"
CONFIG_PATH = CONFIG_DIR / "config.json"

DEFAULT_OUTPUT_DIRECTORY = "~/notes"
DEFAULT_STRUCTURE = FilesystemStructure.MONTH.value
DEFAULT_FILENAME_OPTIONS = [
    FilenameOption.DATE.value,
    FilenameOption.TIME.value,
    FilenameOption.SUBJECT.value,
]
DEFAULT_CONFLICT_RESOLUTION = ConflictResolution.PRIMARY.value


@dataclass
class OutputConfig:
    """Where transcripts go when no project matches"""
    output_directory: str = DEFAULT_OUTPUT_DIRECTORY
    structure: str = DEFAULT_STRUCTURE
    filename_options: List[str] = field(default_factory=lambda: list(DEFAULT_FILENAME_OPTIONS))


@dataclass
class RoutingSettings:
    """Routing policy configuration"""
    conflict_resolution: str = DEFAULT_CONFLICT_RESOLUTION
    context_path: str = ""  # JSON file with people/companies/projects


@dataclass
class ProtokollConfig:
    """Main Protokoll configuration"""
    output: OutputConfig = field(default_factory=OutputConfig)
    routing: RoutingSettings = field(default_factory=RoutingSettings)


def _valid_choice(value: str, enum_cls, default: str, name: str) -> str:
    """Return value if it is a member of enum_cls, else warn and use default"""
    allowed = {member.value for member in enum_cls}
    if value in allowed:
        return value
    logger.warning("Invalid %s %r, using %r", name, value, default)
    return default


def _valid_filename_options(values: List[str]) -> List[str]:
    allowed = {member.value for member in FilenameOption}
    invalid = [v for v in values if v not in allowed]
    if invalid:
        logger.warning("Ignoring unknown filename options: %s", ", ".join(invalid))
    return [v for v in values if v in allowed]


def _parse_output_config(data: dict) -> OutputConfig:
    """Parse output section from config dict"""
    output_data = data.get("output", {})
    return OutputConfig(
        output_directory=output_data.get("output_directory", DEFAULT_OUTPUT_DIRECTORY),
        structure=_valid_choice(
            output_data.get("structure", DEFAULT_STRUCTURE),
            FilesystemStructure, DEFAULT_STRUCTURE, "structure",
        ),
        filename_options=_valid_filename_options(
            output_data.get("filename_options", list(DEFAULT_FILENAME_OPTIONS))
        ),
    )


def _parse_routing_settings(data: dict) -> RoutingSettings:
    """Parse routing section from config dict"""
    routing_data = data.get("routing", {})
    return RoutingSettings(
        conflict_resolution=_valid_choice(
            routing_data.get("conflict_resolution", DEFAULT_CONFLICT_RESOLUTION),
            ConflictResolution, DEFAULT_CONFLICT_RESOLUTION, "conflict_resolution",
        ),
        context_path=routing_data.get("context_path", ""),
    )


def load_config() -> ProtokollConfig:
    """
    Load configuration from file and environment variables.

    Priority (highest to lowest):
    1. Environment variables (a .env file in the working directory is read first)
    2. Config file (~/.protokoll/config.json)
    3. Default values
    """
    load_dotenv()
    config = ProtokollConfig()

    if CONFIG_PATH.exists():
        try:
            with open(CONFIG_PATH) as f:
                data = json.load(f)

            config.output = _parse_output_config(data)
            config.routing = _parse_routing_settings(data)
        except (json.JSONDecodeError, IOError) as e:
            logger.warning("Failed to load config file %s: %s", CONFIG_PATH, e)

    # Environment variable overrides
    if os.getenv("PROTOKOLL_OUTPUT_DIR"):
        config.output.output_directory = os.getenv("PROTOKOLL_OUTPUT_DIR")
    if os.getenv("PROTOKOLL_OUTPUT_STRUCTURE"):
        config.output.structure = _valid_choice(
            os.getenv("PROTOKOLL_OUTPUT_STRUCTURE"),
            FilesystemStructure, config.output.structure, "structure",
        )
    if os.getenv("PROTOKOLL_FILENAME_OPTIONS"):
        options = [o.strip() for o in os.getenv("PROTOKOLL_FILENAME_OPTIONS").split(",") if o.strip()]
        config.output.filename_options = _valid_filename_options(options)
    if os.getenv("PROTOKOLL_CONFLICT_RESOLUTION"):
        config.routing.conflict_resolution = _valid_choice(
            os.getenv("PROTOKOLL_CONFLICT_RESOLUTION"),
            ConflictResolution, config.routing.conflict_resolution, "conflict_resolution",
        )
    if os.getenv("PROTOKOLL_CONTEXT_PATH"):
        config.routing.context_path = os.getenv("PROTOKOLL_CONTEXT_PATH")

    return config


def save_config(config: ProtokollConfig) -> None:
    """Save configuration to file."""
    CONFIG_DIR.mkdir(parents=True, exist_ok=True)

    data = {
        "output": {
            "output_directory": config.output.output_directory,
            "structure": config.output.structure,
            "filename_options": list(config.output.filename_options),
        },
        "routing": {
            "conflict_resolution": config.routing.conflict_resolution,
            "context_path": config.routing.context_path,
        },
    }

    with open(CONFIG_PATH, "w") as f:
        json.dump(data, f, indent=2)

    CONFIG_PATH.chmod(0o600)


def default_destination(config: ProtokollConfig) -> RouteDestination:
    """Default route built from the output settings"""
    return RouteDestination(
        path=config.output.output_directory,
        structure=FilesystemStructure(config.output.structure),
        filename_options=[FilenameOption(o) for o in config.output.filename_options],
        create_directories=True,
    )


def build_routing_config(
    config: ProtokollConfig,
    context: Optional[ContextStore] = None,
) -> RoutingConfig:
    """
    Build a RoutingConfig from settings and the projects in a context store.

    Inactive projects are left out. A project without its own destination
    is written under the default output directory.

    Args:
        config: Loaded Protokoll configuration
        context: Context store providing projects (optional)

    Returns:
        RoutingConfig ready for create_routing()
    """
    default = default_destination(config)
    projects = context.get_all_projects() if context is not None else []

    routes = [
        ProjectRoute(
            project_id=project.id,
            destination=RouteDestination(
                path=project.routing.destination or default.path,
                structure=project.routing.structure,
                filename_options=list(project.routing.filename_options),
                create_directories=True,
            ),
            classification=project.classification,
            active=project.active,
            auto_tags=list(project.routing.auto_tags),
        )
        for project in projects
        if project.active
    ]
    logger.debug("Loaded %d projects from context for routing", len(routes))

    return RoutingConfig(
        default=default,
        projects=routes,
        conflict_resolution=ConflictResolution(config.routing.conflict_resolution),
    )
