"""Article 17 right-to-erasure workflow.

Usage:
    from custos.compliance.erasure import purge_user_data, request_user_deletion

    opened = await request_user_deletion(deps, ctx, tenant_id, user_id)
    # ... after the grace period
    result = await purge_user_data(deps, opened.request_id)
"""

from custos.compliance.erasure.service import (
    ERASURE_STEPS,
    ErasureCascade,
    purge_user_data,
    request_user_deletion,
)
from custos.compliance.erasure.types import DeletionRequestResult, PurgeUserDataResult

__all__ = [
    "DeletionRequestResult",
    "PurgeUserDataResult",
    "ErasureCascade",
    "ERASURE_STEPS",
    "purge_user_data",
    "request_user_deletion",
]
