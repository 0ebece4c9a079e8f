"""API dependencies for the webhook endpoints."""

from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends

from lifecycle_relay.config import Settings, get_settings
from lifecycle_relay.services import (
    BoardResolver,
    LifecycleDispatcher,
    LifecycleNotifier,
    MondayConfig,
    MondayService,
)

__all__ = [
    "SettingsDep",
    "ResolverDep",
    "DispatcherDep",
    "NotifierDep",
    "get_board_resolver",
    "get_lifecycle_dispatcher",
    "get_notifier",
]

SettingsDep = Annotated[Settings, Depends(get_settings)]


def get_board_resolver(settings: SettingsDep) -> BoardResolver:
    """Build the app ID -> board resolver from configuration."""
    default_board_id = (
        settings.monday_default_board_id if settings.allow_default_board else None
    )
    return BoardResolver(settings.board_targets, default_board_id=default_board_id)


async def get_lifecycle_dispatcher(
    settings: SettingsDep,
) -> AsyncGenerator[LifecycleDispatcher, None]:
    """Provide a dispatcher whose Monday client lives for one request."""
    monday = MondayService(MondayConfig.from_settings(settings))
    try:
        yield LifecycleDispatcher(
            monday,
            columns=settings.columns,
            find_attempts=settings.find_retry_attempts,
            find_delay_seconds=settings.find_retry_delay_seconds,
        )
    finally:
        await monday.close()


def get_notifier(settings: SettingsDep) -> LifecycleNotifier:
    """Provide the email notifier."""
    return LifecycleNotifier(settings)


ResolverDep = Annotated[BoardResolver, Depends(get_board_resolver)]
DispatcherDep = Annotated[LifecycleDispatcher, Depends(get_lifecycle_dispatcher)]
NotifierDep = Annotated[LifecycleNotifier, Depends(get_notifier)]
