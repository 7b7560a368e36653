"""
Order lifecycle modules.

Thin orchestration layers over the kernel, engines and services.
Each module contains:
- Domain models (the nouns)
- Workflows (declarative state machines)
- Services (commands returning new immutable snapshots)

Modules:
- Orders: order snapshots, lifecycle workflow, transitions, assignments
- External jobs: outsourced fabrication sub-workflow nested under an order
"""

from mfg_modules import external_jobs, orders

__all__ = ["external_jobs", "orders"]
