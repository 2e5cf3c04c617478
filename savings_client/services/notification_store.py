"""Notification Store — notification list and unread counter for one user.

Invariants:
    - The store is bound to at most one user; list and counter both belong
      to that user
    - Reading, recounting or polling for another user rebinds the store: the
      previous user's refresher is stopped and both caches are emptied
      before anything of the new user is written
    - The counter is set from the server (count endpoint or a full list load)
      or adjusted locally by mark-read / delete-unread / mark-all-read only
    - Manual recounts and poll ticks share one sequence guard, so an older
      count never overwrites a newer one
    - A created notification is prepended only when it belongs to the bound
      user; the counter waits for the next recount
"""

import asyncio
import logging

from savings_client.core.domain_types import (
    DEFAULT_POLL_INTERVAL_SECONDS, EntityKind, NotificationId, Operation,
    OverlapPolicy, UserId,
)
from savings_client.core.entity_cache import CollectionCache, CounterCache
from savings_client.core.errors import ErrorContext
from savings_client.core.projection import count_unread
from savings_client.core.reconcile import (
    apply_created, apply_marked_all_read, apply_marked_read,
    apply_notification_deleted,
)
from savings_client.core.repository_protocols import Sleep
from savings_client.infrastructure.remote_api import NotificationsApi
from savings_client.schemas.records import Notification
from savings_client.schemas.requests import (
    LowBalanceNotification, NewNotification, TransactionNotification,
    validate_payload,
)
from savings_client.services.polling import PollingLease, PollingRefresher
from savings_client.services.store_base import Store

logger = logging.getLogger(__name__)


class NotificationStore(Store):
    KIND = EntityKind.NOTIFICATIONS

    def __init__(
        self,
        api: NotificationsApi,
        *,
        serialize_mutations: bool = True,
        poll_interval: float = DEFAULT_POLL_INTERVAL_SECONDS,
        overlap: OverlapPolicy = OverlapPolicy.SKIP,
        sleep: Sleep = asyncio.sleep,
    ):
        super().__init__(serialize_mutations=serialize_mutations)
        self.api = api
        self.notifications: CollectionCache[Notification] = CollectionCache(self.KIND)
        self.unread = CounterCache(EntityKind.UNREAD_COUNT)
        self.user_id: UserId | None = None
        self.poll_interval = poll_interval
        self.overlap = overlap
        self._sleep = sleep
        self._refresher: PollingRefresher[int] | None = None

    # --- Server reads -------------------------------------------------------------

    async def load(self, user_id: UserId) -> tuple[Notification, ...]:
        """Replace the list with the user's notifications and recount from it."""
        self.bind(user_id)
        is_newest, notifications = await self._reload(self.api.list_for_user(user_id))
        if is_newest and user_id == self.user_id:
            self.notifications.replace(notifications)
            self.unread.replace(count_unread(notifications))
        return notifications

    async def refresh_unread_count(self, user_id: UserId) -> int:
        refresher = self.unread_count_refresher(user_id)
        async with self.status.track(Operation.COUNT):
            return await refresher.refresh()

    async def list_unread(self, user_id: UserId) -> tuple[Notification, ...]:
        async with self.status.track(Operation.LIST):
            return await self.api.list_unread(user_id)

    async def get(self, notification_id: NotificationId) -> Notification:
        async with self.status.track(Operation.GET_BY_ID):
            return await self.api.get_by_id(notification_id)

    # --- Mutations ------------------------------------------------------------------

    async def create(self, payload: NewNotification | dict) -> Notification:
        async with self._mutation(Operation.CREATE):
            payload = validate_payload(NewNotification, payload, self._ctx(Operation.CREATE))
            notification = await self.api.create(payload)
            if notification.user_id == self.user_id:
                apply_created(self.notifications, notification)
        return notification

    async def create_for_transaction(self, payload: TransactionNotification | dict) -> None:
        """Server builds the message; the list picks it up on the next load."""
        async with self._mutation(Operation.CREATE):
            payload = validate_payload(
                TransactionNotification, payload, self._ctx(Operation.CREATE),
            )
            await self.api.create_for_transaction(payload)

    async def create_low_balance(self, payload: LowBalanceNotification | dict) -> None:
        async with self._mutation(Operation.CREATE):
            payload = validate_payload(
                LowBalanceNotification, payload, self._ctx(Operation.CREATE),
            )
            await self.api.create_low_balance(payload)

    async def mark_read(self, notification_id: NotificationId) -> None:
        async with self._mutation(Operation.UPDATE):
            await self.api.mark_read(notification_id)
            adjusted = apply_marked_read(self.notifications, self.unread, notification_id)
        if not adjusted:
            logger.info(
                "Notification already read",
                extra={"entity_kind": self.KIND.value, "record_id": notification_id},
            )

    async def mark_all_read(self, user_id: UserId) -> None:
        async with self._mutation(Operation.UPDATE):
            await self.api.mark_all_read(user_id)
            if user_id == self.user_id:
                apply_marked_all_read(self.notifications, self.unread)

    async def delete(self, notification_id: NotificationId) -> None:
        async with self._mutation(Operation.DELETE):
            await self.api.delete(notification_id)
            apply_notification_deleted(self.notifications, self.unread, notification_id)

    # --- Polling --------------------------------------------------------------------

    def bind(self, user_id: UserId) -> None:
        """Make user_id the owner of both caches, dropping another user's state."""
        if user_id == self.user_id:
            return
        previous = self.user_id
        self._drop_refresher()
        self.user_id = user_id
        if previous is not None:
            logger.info(
                f"Notifications switched from user {previous} to {user_id}",
                extra={"entity_kind": self.KIND.value},
            )
            self.notifications.replace(())
            self.unread.replace(0)

    def unread_count_refresher(self, user_id: UserId) -> PollingRefresher[int]:
        """The bound user's refresher; binds user_id first."""
        self.bind(user_id)
        if self._refresher is None:
            self._refresher = PollingRefresher(
                f"unread_count:{user_id}",
                lambda: self.api.count_unread(user_id),
                self.unread,
                self.poll_interval,
                overlap=self.overlap,
                sleep=self._sleep,
            )
        return self._refresher

    def poll_unread_count(self, user_id: UserId) -> PollingLease:
        """Start (or join) polling the user's unread count; release the lease to stop."""
        return self.unread_count_refresher(user_id).acquire()

    async def stop_polling(self) -> None:
        refresher, self._refresher = self._refresher, None
        if refresher is not None:
            await refresher.aclose()

    def reset(self) -> None:
        """Forget the bound user without waiting for cancelled poll tasks."""
        self._drop_refresher()
        self.user_id = None
        self.notifications.replace(())
        self.unread.replace(0)

    async def clear(self) -> None:
        """Forget the bound user: stop polling, empty the list, zero the counter."""
        await self.stop_polling()
        self.reset()

    def _drop_refresher(self) -> None:
        refresher, self._refresher = self._refresher, None
        if refresher is not None:
            refresher.stop()

    def _ctx(self, operation: Operation) -> ErrorContext:
        return ErrorContext(entity_kind=self.KIND, operation=operation)
