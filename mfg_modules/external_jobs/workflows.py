"""
External Job Workflow (``mfg_modules.external_jobs.workflows``).

Responsibility
--------------
Declares the status machine of an external (outsourced) fabrication job.
Any status may follow any other; the only rule is the per-status
attachment minimum, evaluated by the ``external_attachments_met`` guard.

Architecture position
---------------------
**Modules layer** -- declarative workflow definitions, consumed by
``mfg_services.workflow_executor`` through ``ExternalJobService``.

Invariants enforced
-------------------
* No self-transitions: setting a job to its current status is not a move.
* No role restriction on any transition.
"""

from itertools import permutations

from mfg_kernel.domain.values import ExternalJobStatus
from mfg_kernel.domain.workflow import Guard, Transition, Workflow
from mfg_kernel.logging_config import get_logger
from mfg_services.workflow_executor import EXTERNAL_ATTACHMENTS_MET

logger = get_logger("modules.external_jobs.workflows")

ATTACHMENT_MINIMUM_GUARD = Guard(
    name=EXTERNAL_ATTACHMENTS_MET,
    description="Job carries the attachments required for the target status",
)


def status_action(status: ExternalJobStatus) -> str:
    """Action name for moving a job into ``status``."""
    return f"set_{ExternalJobStatus.coerce(status).value}"


EXTERNAL_JOB_WORKFLOW = Workflow(
    name="external_job",
    description="Third-party fabrication job from request to approval",
    initial_state=ExternalJobStatus.REQUESTED,
    states=tuple(ExternalJobStatus),
    transitions=tuple(
        Transition(
            from_state, to_state,
            action=status_action(to_state), guard=ATTACHMENT_MINIMUM_GUARD,
        )
        for from_state, to_state in permutations(ExternalJobStatus, 2)
    ),
)

logger.info(
    "external_job_workflow_defined",
    extra={
        "workflow": EXTERNAL_JOB_WORKFLOW.name,
        "states": len(EXTERNAL_JOB_WORKFLOW.states),
        "transitions": len(EXTERNAL_JOB_WORKFLOW.transitions),
    },
)
