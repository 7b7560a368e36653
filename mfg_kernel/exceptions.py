"""
Typed Exception Hierarchy for the Manufacturing Order Kernel.

===============================================================================
EXCEPTIONS VS. REJECTIONS
===============================================================================

Business rejections (wrong role, gate not satisfied, missing attachments,
nonsensical state) are NOT exceptions.  They are returned as ``Rejection``
values inside a ``CommandResult`` so callers can pattern-match on them
without control-flow side effects.

Exceptions in this module cover programming and configuration errors:
an unknown status string, a lookup of an external job that is not part of
the order, malformed workflow rules, a history that no longer matches its
owner's status.  Callers that prefer exceptions over result values can
call ``CommandResult.unwrap()``, which raises ``CommandRejectedError``.

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    OrderKernelError (base)
    |
    +-- WorkflowError
    |   +-- UnknownStatusError
    |   +-- UnknownActionError
    |   +-- CommandRejectedError
    |
    +-- ExternalJobError
    |   +-- ExternalJobNotFoundError
    |
    +-- ConfigurationError
    |   +-- InvalidWorkflowRulesError
    |
    +-- HistoryError
        +-- HistoryIntegrityError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category      | Code                       | When Raised
--------------|----------------------------|-----------------------------------
Workflow      | UNKNOWN_STATUS             | Status string not in the enum
              | UNKNOWN_ACTION             | Action name not in the workflow
              | COMMAND_REJECTED           | unwrap() on a rejected result
--------------|----------------------------|-----------------------------------
External job  | EXTERNAL_JOB_NOT_FOUND     | Job id not in order.external_jobs
--------------|----------------------------|-----------------------------------
Configuration | INVALID_WORKFLOW_RULES     | WorkflowRules failed validation
--------------|----------------------------|-----------------------------------
History       | HISTORY_INTEGRITY          | History tail != current status
"""

from typing import Any


class OrderKernelError(Exception):
    """
    Base exception for all order kernel errors.

    All subclasses must have a ``code`` class attribute for machine-readable
    error identification.
    """

    code: str = "ORDER_KERNEL_ERROR"


# Workflow exceptions


class WorkflowError(OrderKernelError):
    """Base exception for workflow errors."""

    code: str = "WORKFLOW_ERROR"


class UnknownStatusError(WorkflowError):
    """A status value is not part of the status enum."""

    code: str = "UNKNOWN_STATUS"

    def __init__(self, value: str, kind: str = "order"):
        self.value = value
        self.kind = kind
        super().__init__(f"Unknown {kind} status: {value!r}")


class UnknownActionError(WorkflowError):
    """An action name is not declared by the workflow."""

    code: str = "UNKNOWN_ACTION"

    def __init__(self, action: str, workflow_name: str):
        self.action = action
        self.workflow_name = workflow_name
        super().__init__(f"Unknown action {action!r} in workflow {workflow_name!r}")


class CommandRejectedError(WorkflowError):
    """
    Raised by ``CommandResult.unwrap()`` when the command was rejected.

    ``rejection_code`` carries the rejection kind's code (``UNAUTHORIZED``,
    ``NOT_READY``, ``INSUFFICIENT_ATTACHMENTS``, ``INVALID_STATE``).
    """

    code: str = "COMMAND_REJECTED"

    def __init__(self, rejection_code: str, reason: str, rejection: Any = None):
        self.rejection_code = rejection_code
        self.reason = reason
        self.rejection = rejection
        super().__init__(f"{rejection_code}: {reason}")


# External job exceptions


class ExternalJobError(OrderKernelError):
    """Base exception for external job errors."""

    code: str = "EXTERNAL_JOB_ERROR"


class ExternalJobNotFoundError(ExternalJobError):
    """External job is not part of the given order."""

    code: str = "EXTERNAL_JOB_NOT_FOUND"

    def __init__(self, job_id: str, order_id: str):
        self.job_id = job_id
        self.order_id = order_id
        super().__init__(f"External job {job_id} not found on order {order_id}")


# Configuration exceptions


class ConfigurationError(OrderKernelError):
    """Base exception for configuration errors."""

    code: str = "CONFIGURATION_ERROR"


class InvalidWorkflowRulesError(ConfigurationError):
    """WorkflowRules failed validation."""

    code: str = "INVALID_WORKFLOW_RULES"

    def __init__(self, errors: list[str]):
        self.errors = errors
        super().__init__(
            f"Invalid workflow rules: {len(errors)} error(s): " + "; ".join(errors)
        )


# History exceptions


class HistoryError(OrderKernelError):
    """Base exception for status history errors."""

    code: str = "HISTORY_ERROR"


class HistoryIntegrityError(HistoryError):
    """
    Status history no longer agrees with the owner's status.

    The most recent history entry must always carry the current status.
    """

    code: str = "HISTORY_INTEGRITY"

    def __init__(self, current_status: str, last_history_status: str):
        self.current_status = current_status
        self.last_history_status = last_history_status
        super().__init__(
            f"History tail status {last_history_status!r} does not match "
            f"current status {current_status!r}"
        )
