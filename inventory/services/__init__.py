"""
Inventory Services - locations, items, stock levels, transfers and the adjustment log

Usage:
    from inventory.services import InventoryTransferService, TransferStatusService

    # Create a transfer (always starts Pending)
    result = InventoryTransferService.create(inventory_item_id=1, variation_id=3, quantity=10,
                                             from_location_id=1, to_location_id=2)

    # Complete it: moves the stock and writes two adjustments
    TransferStatusService.transition(result["id"], "COMPLETED", actor_id=staff.id)
"""

# Base utilities
from inventory.services.base_service import (
    ServiceError,
    ValidationError,
    NotFoundError,
    BusinessRuleError,
    UnauthorizedError,
    InsufficientStockError,
    InsufficientStockForReversalError,
    TransactionFailureError,
    success_response,
    error_response,
    paginate_queryset,
    to_int,
    generate_number,
    BaseService,
)

# Core entities
from .location_service import StoreLocationService
from .item_service import InventoryItemService

# Stock ledger & audit log
from .level_service import StockLevelService, StockLedger
from .adjustment_service import InventoryAdjustmentService

# Transfers
from .transfer_service import InventoryTransferService
from .status_service import (
    TransferStatusService,
    TransitionResult,
    TransitionOutcome,
    TransitionKind,
    StockMovement,
    classify_transition,
)


__all__ = [
    # Base
    "ServiceError",
    "ValidationError",
    "NotFoundError",
    "BusinessRuleError",
    "UnauthorizedError",
    "InsufficientStockError",
    "InsufficientStockForReversalError",
    "TransactionFailureError",
    "success_response",
    "error_response",
    "paginate_queryset",
    "to_int",
    "generate_number",
    "BaseService",

    # Core
    "StoreLocationService",
    "InventoryItemService",

    # Stock ledger & audit log
    "StockLevelService",
    "StockLedger",
    "InventoryAdjustmentService",

    # Transfers
    "InventoryTransferService",
    "TransferStatusService",
    "TransitionResult",
    "TransitionOutcome",
    "TransitionKind",
    "StockMovement",
    "classify_transition",
]
