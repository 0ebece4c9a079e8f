"""Business logic services."""

from .board_resolver import BoardResolver
from .field_mapper import MondayColumnFormatter, map_event_to_columns, split_name
from .lifecycle_dispatcher import DispatchOutcome, LifecycleDispatcher
from .monday_service import MondayConfig, MondayService
from .notifier import LifecycleNotifier

__all__ = [
    "BoardResolver",
    "DispatchOutcome",
    "LifecycleDispatcher",
    "LifecycleNotifier",
    "MondayColumnFormatter",
    "MondayConfig",
    "MondayService",
    "map_event_to_columns",
    "split_name",
]
