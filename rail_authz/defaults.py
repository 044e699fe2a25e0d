"""
Library defaults for Rail Authz.

Values here are the lowest priority source. Projects override them through
the ``RAIL_AUTHZ`` dictionary in their Django settings.
"""

from typing import Any

LIBRARY_DEFAULTS: dict[str, Any] = {
    "derived_permissions": {
        # Synthesize policies for schema types without an authored entry
        "enabled": True,
        # Scalars and enums default to Allow, everything else to Deny
        "allow_leaf_types": True,
    },
    "operations": {
        # Mutations must start with create/update/upsert/delete/...
        "require_classification": True,
        # Plain callables of the data layer run through sync_to_async
        "run_sync_in_thread": True,
    },
    "cache": {
        "enabled": True,
    },
    "diagnostics": {
        "include_result_in_message": True,
        "log_denials": True,
        # Capture broken policies in Sentry
        "report_policy_errors": False,
    },
}
