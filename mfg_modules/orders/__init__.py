"""
Orders Module.

Handles the manufacturing order lifecycle from sales draft through
engineering to production:
- Order, attachment, comment and external job snapshots
- The order workflow (roles and readiness gates per move)
- Status transitions, send back, and derived action sets
- Engineer and manager assignment, including the engineering queue
"""

from mfg_modules.orders.assignment import AssignmentManager
from mfg_modules.orders.models import Attachment, Comment, ExternalJob, Order
from mfg_modules.orders.service import OrderAction, OrderService
from mfg_modules.orders.workflows import ORDER_WORKFLOW, resolve_send_back_target

__all__ = [
    "AssignmentManager",
    "Attachment",
    "Comment",
    "ExternalJob",
    "ORDER_WORKFLOW",
    "Order",
    "OrderAction",
    "OrderService",
    "resolve_send_back_target",
]
