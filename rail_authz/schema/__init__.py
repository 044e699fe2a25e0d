"""
Schema introspection for the authorization engine.
"""

from .type_graph import TypeDefs, TypeGraph, resolve_type_defs

__all__ = ["TypeDefs", "TypeGraph", "resolve_type_defs"]
