"""Savings Client — wires settings, transport, endpoint APIs and stores together.

Invariants:
    - One httpx.AsyncClient per SavingsClient, closed by aclose()
    - open() rehydrates the persisted user before anything else runs
    - aclose() stops every poller before the transport is closed
    - logout() forgets the user, stops notification polling and empties
      the notification caches
    - Notification state follows the session: when the current user changes
      or goes away, the notification store drops the previous user's caches
      and poller

Design Decisions:
    - Async context manager mirrors the FastAPI lifespan: setup on enter,
      cleanup on exit, logging configured once at startup
    - Stores are plain attributes: the UI subscribes to their caches directly
"""

import asyncio
import logging

import httpx

from savings_client.config import Settings, get_settings
from savings_client.core.entity_cache import UNSET
from savings_client.core.live_view import LiveView
from savings_client.core.projection import (
    AccountFilter, NotificationFilter, RecentTransactionsFilter, TransactionFilter,
    filter_accounts, filter_notifications, project_recent_transactions,
    project_transactions,
)
from savings_client.core.repository_protocols import KeyValueStorage, Sleep
from savings_client.infrastructure.observability import setup_logging
from savings_client.infrastructure.remote_adapter import RemoteFetchAdapter
from savings_client.infrastructure.remote_api import (
    AccountsApi, NotificationsApi, TransactionsApi, UsersApi,
)
from savings_client.infrastructure.session_storage import JsonFileStorage
from savings_client.services.account_store import AccountStore
from savings_client.services.notification_store import NotificationStore
from savings_client.services.polling import PollingLease
from savings_client.services.session_store import SessionStore
from savings_client.services.transaction_store import TransactionStore

logger = logging.getLogger(__name__)


class SavingsClient:
    """Entry point for a UI: one object holding every store of the session."""

    def __init__(
        self,
        adapter: RemoteFetchAdapter,
        storage: KeyValueStorage,
        settings: Settings,
        *,
        sleep: Sleep = asyncio.sleep,
    ):
        self.settings = settings
        self.adapter = adapter
        serialize = settings.serialize_mutations
        self.accounts = AccountStore(AccountsApi(adapter), serialize_mutations=serialize)
        self.transactions = TransactionStore(
            TransactionsApi(adapter), serialize_mutations=serialize,
        )
        self.notifications = NotificationStore(
            NotificationsApi(adapter),
            serialize_mutations=serialize,
            poll_interval=settings.notification_poll_interval_seconds,
            overlap=settings.poll_overlap_policy,
            sleep=sleep,
        )
        self.session = SessionStore(
            UsersApi(adapter), storage,
            key=settings.session_storage_key, serialize_mutations=serialize,
        )
        self.session.current.subscribe(self._follow_current_user)

    @classmethod
    def from_settings(
        cls,
        settings: Settings | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        storage: KeyValueStorage | None = None,
        sleep: Sleep = asyncio.sleep,
        configure_logging: bool = True,
    ) -> "SavingsClient":
        settings = settings or get_settings()
        if configure_logging:
            setup_logging(settings.log_level, settings.log_format)
        adapter = RemoteFetchAdapter.from_base_url(
            settings.api_base_url,
            timeout_seconds=settings.request_timeout_seconds,
            transport=transport,
        )
        if storage is None:
            storage = JsonFileStorage(settings.session_storage_path)
        return cls(adapter, storage, settings, sleep=sleep)

    # --- Lifecycle --------------------------------------------------------------

    async def open(self) -> "SavingsClient":
        self.session.restore()
        logger.info(f"Savings client ready for {self.settings.api_base_url}")
        return self

    async def aclose(self) -> None:
        await self.notifications.stop_polling()
        await self.adapter.aclose()
        logger.info("Savings client closed")

    async def __aenter__(self) -> "SavingsClient":
        return await self.open()

    async def __aexit__(self, *exc) -> None:
        await self.aclose()

    # --- Session ------------------------------------------------------------------

    async def logout(self) -> None:
        self.session.logout()
        await self.notifications.clear()

    def _follow_current_user(self, user) -> None:
        bound = self.notifications.user_id
        if bound is not None and (user is UNSET or user.id != bound):
            self.notifications.reset()

    def poll_unread_count(self) -> PollingLease:
        """Poll the logged-in user's unread count until the lease is released."""
        user = self.session.require_user()
        return self.notifications.poll_unread_count(user.id)

    async def load_notifications(self):
        user = self.session.require_user()
        return await self.notifications.load(user.id)

    # --- Views --------------------------------------------------------------------

    def account_view(self, criteria: AccountFilter = AccountFilter()) -> LiveView:
        return LiveView(self.accounts.cache, filter_accounts, criteria)

    def transaction_view(
        self, criteria: TransactionFilter = TransactionFilter(),
    ) -> LiveView:
        return LiveView(self.transactions.cache, project_transactions, criteria)

    def recent_transactions_view(
        self, criteria: RecentTransactionsFilter = RecentTransactionsFilter(),
    ) -> LiveView:
        return LiveView(
            self.transactions.cache, project_recent_transactions, criteria,
        )

    def notification_view(
        self, criteria: NotificationFilter = NotificationFilter(),
    ) -> LiveView:
        return LiveView(self.notifications.notifications, filter_notifications, criteria)
