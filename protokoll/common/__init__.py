"""
Protokoll Common Module

Shared infrastructure: configuration and the entity context store.
"""

from .config import ProtokollConfig, load_config, build_routing_config
from .context import ContextStore, EntityLookup, Person, Company, Project, load_context

__all__ = [
    "ProtokollConfig",
    "load_config",
    "build_routing_config",
    "ContextStore",
    "EntityLookup",
    "Person",
    "Company",
    "Project",
    "load_context",
]
