# Overview: Classifies a stock level against an item's par levels.

"""
Stock Anomaly Detection

Checked in order, first match wins:
- quantity <= 0                   -> out_of_stock  (critical)
- quantity <= par_low * 0.5       -> critical_low  (critical)
- quantity <= par_low             -> low_stock     (high)
- quantity >  par_high * 2        -> overstock     (medium)

out_of_stock and critical_low block a count from being accepted
(can_proceed=False) unless the caller overrides.
"""

from __future__ import annotations

from dataclasses import dataclass

from .inventory_service import get_inventory_item


ANOMALY_OUT_OF_STOCK = "out_of_stock"
ANOMALY_CRITICAL_LOW = "critical_low"
ANOMALY_LOW_STOCK = "low_stock"
ANOMALY_OVERSTOCK = "overstock"

SEVERITY_CRITICAL = "critical"
SEVERITY_HIGH = "high"
SEVERITY_MEDIUM = "medium"

CRITICAL_LOW_RATIO = 0.5
OVERSTOCK_RATIO = 2

BLOCKING_ANOMALIES = frozenset({ANOMALY_OUT_OF_STOCK, ANOMALY_CRITICAL_LOW})


@dataclass(frozen=True)
class AnomalyResult:
    anomaly_type: str | None
    severity: str | None
    message: str | None
    threshold_value: float | None
    current_value: int

    @property
    def has_anomaly(self) -> bool:
        return self.anomaly_type is not None

    @property
    def can_proceed(self) -> bool:
        return self.anomaly_type not in BLOCKING_ANOMALIES

    def to_dict(self) -> dict:
        return {
            "hasAnomaly": self.has_anomaly,
            "anomalyType": self.anomaly_type,
            "severity": self.severity,
            "message": self.message,
            "thresholdValue": self.threshold_value,
            "currentValue": self.current_value,
            "canProceed": self.can_proceed,
        }


def detect_stock_anomaly(current_quantity: int, par_level_low: int, par_level_high: int) -> AnomalyResult:
    low = par_level_low or 0
    high = par_level_high or 0

    if current_quantity <= 0:
        return AnomalyResult(
            ANOMALY_OUT_OF_STOCK, SEVERITY_CRITICAL,
            "Item is out of stock", 0, current_quantity,
        )

    critical_threshold = low * CRITICAL_LOW_RATIO
    if current_quantity <= critical_threshold:
        return AnomalyResult(
            ANOMALY_CRITICAL_LOW, SEVERITY_CRITICAL,
            f"Stock critically low: {current_quantity} (below {critical_threshold:g})",
            critical_threshold, current_quantity,
        )

    if current_quantity <= low:
        return AnomalyResult(
            ANOMALY_LOW_STOCK, SEVERITY_HIGH,
            f"Stock below reorder point: {current_quantity} (par low {low})",
            low, current_quantity,
        )

    # A maximum of 0 means none is configured
    overstock_threshold = high * OVERSTOCK_RATIO
    if high > 0 and current_quantity > overstock_threshold:
        return AnomalyResult(
            ANOMALY_OVERSTOCK, SEVERITY_MEDIUM,
            f"Potential overstock: {current_quantity} (above {overstock_threshold})",
            overstock_threshold, current_quantity,
        )

    return AnomalyResult(None, None, None, None, current_quantity)


def evaluate_count(item_id: int, counted_quantity: int, client_id: str) -> tuple:
    """
    Check a counted quantity against an inventory item's par levels.

    Returns (item, AnomalyResult).

    Raises:
        InventoryItemNotFound: If the item does not belong to client_id
    """
    item = get_inventory_item(item_id, client_id)
    result = detect_stock_anomaly(counted_quantity, item.par_level_low, item.effective_par_level_high)
    return item, result
