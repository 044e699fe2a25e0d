"""
Error reporting hooks for broken policies.

Denials are expected outcomes and are only logged. Policy evaluation
errors point at a broken permission mapping; when
``diagnostics.report_policy_errors`` is enabled they are also captured in
Sentry, tagged with the operation they broke.
"""

import logging
from typing import Optional

import sentry_sdk

from .exceptions import PolicyEvaluationError
from .policy import RootData

logger = logging.getLogger(__name__)


def report_policy_error(error: PolicyEvaluationError, root_data: Optional[RootData] = None) -> None:
    tags = {"authz.error_code": error.code}
    if error.type_name:
        tags["authz.type"] = error.type_name
    if error.auth_type:
        tags["authz.auth_type"] = error.auth_type
    if root_data is not None:
        tags["authz.operation"] = f"{root_data.root_type_name}.{root_data.root_field_name}"
    try:
        sentry_sdk.capture_exception(error, tags=tags)
    except Exception as exc:
        logger.warning("Unable to report policy error to Sentry: %s", exc)
