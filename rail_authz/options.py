"""
Runtime options of the authorization engine.
"""

from dataclasses import dataclass, fields
from typing import Any, Mapping, Optional, Union

from .config_proxy import get_setting


@dataclass
class AuthorizationOptions:
    """Configuration for one ``Authorized`` instance."""

    auto_generate_derived_type_permissions: bool = True
    allow_leaf_types: bool = True
    require_operation_classification: bool = True
    run_sync_in_thread: bool = True
    cache_enabled: bool = True
    include_result_in_message: bool = True
    log_denials: bool = True
    report_policy_errors: bool = False

    @classmethod
    def from_settings(cls, **overrides: Any) -> "AuthorizationOptions":
        """Build options from the RAIL_AUTHZ settings, then apply overrides."""
        values = {
            "auto_generate_derived_type_permissions": get_setting("derived_permissions.enabled", True),
            "allow_leaf_types": get_setting("derived_permissions.allow_leaf_types", True),
            "require_operation_classification": get_setting("operations.require_classification", True),
            "run_sync_in_thread": get_setting("operations.run_sync_in_thread", True),
            "cache_enabled": get_setting("cache.enabled", True),
            "include_result_in_message": get_setting("diagnostics.include_result_in_message", True),
            "log_denials": get_setting("diagnostics.log_denials", True),
            "report_policy_errors": get_setting("diagnostics.report_policy_errors", False),
        }
        known = {f.name for f in fields(cls)}
        unknown = set(overrides) - known
        if unknown:
            raise TypeError(f"Unknown authorization options: {', '.join(sorted(unknown))}")
        values.update(overrides)
        return cls(**{key: bool(value) for key, value in values.items()})


def resolve_options(
    options: Optional[Union[AuthorizationOptions, Mapping[str, Any]]] = None,
) -> AuthorizationOptions:
    if isinstance(options, AuthorizationOptions):
        return options
    return AuthorizationOptions.from_settings(**dict(options or {}))
