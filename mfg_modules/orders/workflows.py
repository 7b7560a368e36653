"""
Order Workflow (``mfg_modules.orders.workflows``).

Responsibility
--------------
Declares the order lifecycle state machine once: every permitted move,
the role allowed to make it, and the readiness guard on the two forward
gates.  UI surfaces and services derive permissions from this table
instead of re-deriving them per screen.

Architecture position
---------------------
**Modules layer** -- declarative workflow definitions.  Imports canonical
Guard, Transition, Workflow from ``mfg_kernel.domain.workflow``.
Consumed by ``mfg_services.workflow_executor`` at runtime.

Invariants enforced
-------------------
* All ``Workflow``, ``Transition``, and ``Guard`` instances are frozen.
* ``send_back`` targets depend on the acting role: Sales always returns
  the order to draft, Engineering undoes one engineering stage.
* No terminal state: ``in_production`` is the practical end of the line.
"""

from mfg_kernel.domain.values import OrderStatus, Role
from mfg_kernel.domain.workflow import Guard, Transition, Workflow
from mfg_kernel.logging_config import get_logger
from mfg_services.workflow_executor import ENGINEERING_READY, PRODUCTION_READY

logger = get_logger("modules.orders.workflows")

# Actions
SEND_TO_ENGINEERING = "send_to_engineering"
START_ENGINEERING = "start_engineering"
BLOCK_ENGINEERING = "block_engineering"
RESUME_ENGINEERING = "resume_engineering"
SEND_TO_PRODUCTION = "send_to_production"
SEND_BACK = "send_back"
RETURN_TO_QUEUE = "return_to_queue"
START_PRODUCTION = "start_production"

_SALES = (Role.SALES.value,)
_ENGINEERING = (Role.ENGINEERING.value,)
_PRODUCTION = (Role.PRODUCTION.value, Role.ADMIN.value)


# -----------------------------------------------------------------------------
# Guards
# -----------------------------------------------------------------------------

READY_FOR_ENGINEERING_GATE = Guard(
    name=ENGINEERING_READY,
    description="Checklist, attachments and comment requirements for engineering met",
)

READY_FOR_PRODUCTION_GATE = Guard(
    name=PRODUCTION_READY,
    description="Checklist, attachments and comment requirements for production met",
)


# -----------------------------------------------------------------------------
# Order Workflow
# -----------------------------------------------------------------------------

ORDER_WORKFLOW = Workflow(
    name="order",
    description="Manufacturing order lifecycle from sales draft to production",
    initial_state=OrderStatus.DRAFT,
    states=tuple(OrderStatus),
    transitions=(
        Transition(
            OrderStatus.DRAFT, OrderStatus.READY_FOR_ENGINEERING,
            action=SEND_TO_ENGINEERING, roles=_SALES, guard=READY_FOR_ENGINEERING_GATE,
        ),
        Transition(
            OrderStatus.READY_FOR_ENGINEERING, OrderStatus.IN_ENGINEERING,
            action=START_ENGINEERING, roles=_ENGINEERING,
        ),
        Transition(
            OrderStatus.IN_ENGINEERING, OrderStatus.ENGINEERING_BLOCKED,
            action=BLOCK_ENGINEERING, roles=_ENGINEERING,
        ),
        Transition(
            OrderStatus.ENGINEERING_BLOCKED, OrderStatus.IN_ENGINEERING,
            action=RESUME_ENGINEERING, roles=_ENGINEERING,
        ),
        Transition(
            OrderStatus.IN_ENGINEERING, OrderStatus.READY_FOR_PRODUCTION,
            action=SEND_TO_PRODUCTION, roles=_ENGINEERING, guard=READY_FOR_PRODUCTION_GATE,
        ),
        # Sales send back: always to draft
        Transition(
            OrderStatus.READY_FOR_ENGINEERING, OrderStatus.DRAFT,
            action=SEND_BACK, roles=_SALES,
        ),
        Transition(
            OrderStatus.IN_ENGINEERING, OrderStatus.DRAFT,
            action=SEND_BACK, roles=_SALES,
        ),
        Transition(
            OrderStatus.ENGINEERING_BLOCKED, OrderStatus.DRAFT,
            action=SEND_BACK, roles=_SALES,
        ),
        # Engineering send back: one engineering stage
        Transition(
            OrderStatus.IN_ENGINEERING, OrderStatus.READY_FOR_ENGINEERING,
            action=SEND_BACK, roles=_ENGINEERING,
        ),
        Transition(
            OrderStatus.ENGINEERING_BLOCKED, OrderStatus.READY_FOR_ENGINEERING,
            action=SEND_BACK, roles=_ENGINEERING,
        ),
        Transition(
            OrderStatus.READY_FOR_PRODUCTION, OrderStatus.IN_ENGINEERING,
            action=SEND_BACK, roles=_ENGINEERING,
        ),
        # Return to queue (status part; the assignment part is AssignmentManager's)
        Transition(
            OrderStatus.IN_ENGINEERING, OrderStatus.READY_FOR_ENGINEERING,
            action=RETURN_TO_QUEUE, roles=_ENGINEERING,
        ),
        Transition(
            OrderStatus.ENGINEERING_BLOCKED, OrderStatus.READY_FOR_ENGINEERING,
            action=RETURN_TO_QUEUE, roles=_ENGINEERING,
        ),
        Transition(
            OrderStatus.READY_FOR_PRODUCTION, OrderStatus.IN_PRODUCTION,
            action=START_PRODUCTION, roles=_PRODUCTION,
        ),
    ),
)

# Actions that carry more than a status change, mapped to the command that runs them.
DEDICATED_COMMANDS: dict[str, str] = {
    SEND_BACK: "OrderService.send_back",
    RETURN_TO_QUEUE: "AssignmentManager.return_to_queue",
}

# Actions a UI may fire directly through OrderService.execute_action.
STATUS_ACTIONS: frozenset[str] = ORDER_WORKFLOW.actions - frozenset(DEDICATED_COMMANDS)


def resolve_send_back_target(current: OrderStatus, role: str) -> OrderStatus:
    """Where "send back" takes an order for ``role`` from ``current``.

    Engineering undoes one stage (ready_for_production -> in_engineering,
    in_engineering/engineering_blocked -> ready_for_engineering); every
    other combination resolves to draft.
    """
    current = OrderStatus.coerce(current)
    if role == Role.ENGINEERING.value:
        if current == OrderStatus.READY_FOR_PRODUCTION:
            return OrderStatus.IN_ENGINEERING
        if current in (OrderStatus.IN_ENGINEERING, OrderStatus.ENGINEERING_BLOCKED):
            return OrderStatus.READY_FOR_ENGINEERING
    return OrderStatus.DRAFT


logger.info(
    "order_workflow_defined",
    extra={
        "workflow": ORDER_WORKFLOW.name,
        "states": len(ORDER_WORKFLOW.states),
        "transitions": len(ORDER_WORKFLOW.transitions),
    },
)
