# Overview: Workflow configuration table for scanning sessions.

"""
Scanning Workflows

Each workflow is a fixed set of behaviour flags. A session resolves its
workflow exactly once at start and copies the flags onto its own row;
nothing re-derives behaviour from the workflow name afterwards.

- inventory_count: count on hand, set quantities on completion
- receiving: add delivered quantities on completion, location required
- quick_update: set inventory on every scan
- stock_take: full count by location, set quantities on completion
"""

from __future__ import annotations

from dataclasses import dataclass

from ..validation import ValidationError


WORKFLOW_INVENTORY_COUNT = "inventory_count"
WORKFLOW_RECEIVING = "receiving"
WORKFLOW_QUICK_UPDATE = "quick_update"
WORKFLOW_STOCK_TAKE = "stock_take"

# How completion applies accumulated quantities to inventory
APPLY_SET = "set"
APPLY_ADD = "add"


class MissingWorkflowType(ValidationError):
    """Raised when a session is started without a workflow type."""
    pass


class UnknownWorkflowType(ValidationError):
    """Raised when the workflow type is not in the table."""
    pass


@dataclass(frozen=True)
class WorkflowConfig:
    name: str
    allow_quantity_edit: bool
    require_location: bool
    auto_apply_changes: bool
    block_on_anomalies: bool
    apply_mode: str
    instructions: tuple[str, ...]
    # Completion recommendations; str.format fields come from the session summary
    completion_notes: tuple[str, ...] = ()
    flag_high_quantities: bool = False

    def to_dict(self) -> dict:
        return {
            "allowQuantityEdit": self.allow_quantity_edit,
            "requireLocation": self.require_location,
            "autoApplyChanges": self.auto_apply_changes,
            "blockOnAnomalies": self.block_on_anomalies,
        }


WORKFLOW_CONFIGS = {
    WORKFLOW_INVENTORY_COUNT: WorkflowConfig(
        name=WORKFLOW_INVENTORY_COUNT,
        allow_quantity_edit=True,
        require_location=False,
        auto_apply_changes=False,
        block_on_anomalies=True,
        apply_mode=APPLY_SET,
        instructions=(
            "Scan each item to count current inventory",
            "Adjust quantities as needed",
            "Review counts before completing session",
        ),
        completion_notes=("Counted {totalItems} unique products",),
        flag_high_quantities=True,
    ),
    WORKFLOW_RECEIVING: WorkflowConfig(
        name=WORKFLOW_RECEIVING,
        allow_quantity_edit=True,
        require_location=True,
        auto_apply_changes=False,
        block_on_anomalies=False,
        apply_mode=APPLY_ADD,
        instructions=(
            "Scan items as they are received",
            "Verify quantities against delivery receipt",
            "Specify storage location for each item",
        ),
        completion_notes=(
            "Received {totalQuantity} units across {totalItems} products",
            "Verify all items have been properly stored",
        ),
    ),
    WORKFLOW_QUICK_UPDATE: WorkflowConfig(
        name=WORKFLOW_QUICK_UPDATE,
        allow_quantity_edit=True,
        require_location=False,
        auto_apply_changes=True,
        block_on_anomalies=False,
        apply_mode=APPLY_SET,
        instructions=(
            "Scan items to quickly update inventory",
            "Changes are applied immediately",
            "Use for spot corrections",
        ),
    ),
    WORKFLOW_STOCK_TAKE: WorkflowConfig(
        name=WORKFLOW_STOCK_TAKE,
        allow_quantity_edit=True,
        require_location=True,
        auto_apply_changes=False,
        block_on_anomalies=True,
        apply_mode=APPLY_SET,
        instructions=(
            "Perform a complete stock take",
            "Scan all items in each location",
            "Verify counts are accurate",
        ),
        completion_notes=(
            "Review discrepancies and investigate variances",
            "Update par levels if usage patterns have changed",
        ),
    ),
}

WORKFLOW_TYPES = tuple(WORKFLOW_CONFIGS)


def get_workflow_config(workflow_type: str | None) -> WorkflowConfig:
    """
    Resolve a workflow name to its configuration.

    Raises:
        MissingWorkflowType: If workflow_type is empty
        UnknownWorkflowType: If workflow_type is not a known workflow name
    """
    if not workflow_type:
        raise MissingWorkflowType("Workflow type is required")
    if not isinstance(workflow_type, str):
        raise UnknownWorkflowType(f"Workflow type must be one of: {', '.join(WORKFLOW_TYPES)}")

    config = WORKFLOW_CONFIGS.get(workflow_type)
    if config is None:
        raise UnknownWorkflowType(
            f"Invalid workflow type: {workflow_type}. Must be one of: {', '.join(WORKFLOW_TYPES)}"
        )
    return config
