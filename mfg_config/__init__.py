"""
Workflow rules configuration.

The single public entry points are ``load_workflow_rules(path)`` for a
tenant's YAML file and ``default_workflow_rules()`` for the bundled
defaults.  Both return an immutable ``WorkflowRules``.
"""

from mfg_config.loader import (
    compute_checksum,
    default_workflow_rules,
    load_workflow_rules,
    parse_workflow_rules,
    rules_to_dict,
)

__all__ = [
    "compute_checksum",
    "default_workflow_rules",
    "load_workflow_rules",
    "parse_workflow_rules",
    "rules_to_dict",
]
