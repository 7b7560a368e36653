"""
mfg_services -- Package init and public API.

Responsibility:
    Coordination between the pure engines and the module services:
    generic workflow transition execution (role check, guard evaluation,
    trace logging) and role enforcement for non-transition actions.

Architecture position:
    Services -- orchestration over engines + kernel.

    Dependency direction:
        mfg_services/ -> mfg_engines/  (allowed)
        mfg_services/ -> mfg_kernel/   (allowed)
        mfg_engines/  -> mfg_services/ (FORBIDDEN)
        mfg_kernel/   -> mfg_services/ (FORBIDDEN)
"""

from mfg_services.rbac_authority import ACTION_TO_ROLES, check_role, get_roles_for_action
from mfg_services.workflow_executor import (
    ENGINEERING_READY,
    EXTERNAL_ATTACHMENTS_MET,
    PRODUCTION_READY,
    GuardExecutor,
    WorkflowExecutor,
    default_guard_executor,
)

__all__ = [
    "ACTION_TO_ROLES",
    "ENGINEERING_READY",
    "EXTERNAL_ATTACHMENTS_MET",
    "GuardExecutor",
    "PRODUCTION_READY",
    "WorkflowExecutor",
    "check_role",
    "default_guard_executor",
    "get_roles_for_action",
]
