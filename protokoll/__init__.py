"""
Protokoll Routing

Routes transcribed audio notes to project destinations.

Philosophy:
- Evidence-based routing: every decision lists the signals behind it
- Explicit phrases outweigh people, companies and topics
- Weak matches fall back to the default destination
- No I/O in the core: callers persist paths and metadata

Usage:
    from protokoll.common import load_config, load_context, build_routing_config
    from protokoll.routing import create_routing, RoutingContext, routing_metadata
"""

__version__ = "0.1.0"
