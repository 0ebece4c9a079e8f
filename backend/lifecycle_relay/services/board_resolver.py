"""Resolution of marketplace app IDs to destination boards."""

from collections.abc import Mapping

from lifecycle_relay.core.logging import get_logger
from lifecycle_relay.schemas.board import BoardTarget

logger = get_logger(__name__)


class BoardResolver:
    """Static app ID -> board lookup.

    An app with no entry is rejected. ``default_board_id`` is only used
    when the deployment explicitly opts in to a catch-all board.
    """

    def __init__(
        self,
        board_map: Mapping[str, BoardTarget],
        default_board_id: str | None = None,
    ):
        self._board_map = {str(app_id): target for app_id, target in board_map.items()}
        self._default_board_id = default_board_id or None

    def resolve(self, app_id: str | int | None) -> BoardTarget | None:
        """Get the destination board for an app, or None when unmapped."""
        if app_id is None:
            return None

        key = str(app_id).strip()
        target = self._board_map.get(key)
        if target is not None:
            return target

        if self._default_board_id:
            logger.info(
                "board_resolved_to_default",
                app_id=key,
                board_id=self._default_board_id,
            )
            return BoardTarget(board_id=self._default_board_id)

        logger.warning("board_mapping_missing", app_id=key)
        return None
