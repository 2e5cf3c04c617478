"""Session Store — the current user, kept in a single-slot cache and persisted.

Invariants:
    - The persisted blob and the cache agree after every login, update and logout
    - restore() reads storage once; a corrupt blob is logged, removed and ignored
    - Logout never calls the server: it only forgets the local session
    - Only an update of the current user's own record touches the slot
"""

import logging

import pydantic

from savings_client.core.domain_types import (
    SESSION_STORAGE_KEY, EntityKind, Operation, UserId,
)
from savings_client.core.entity_cache import SingleSlotCache
from savings_client.core.errors import ErrorContext, ValidationError
from savings_client.core.repository_protocols import KeyValueStorage
from savings_client.infrastructure.remote_api import UsersApi
from savings_client.schemas.records import User
from savings_client.schemas.requests import (
    LoginRequest, PasswordChange, RegistrationRequest, UserUpdate,
    validate_payload,
)
from savings_client.services.store_base import Store

logger = logging.getLogger(__name__)


class SessionStore(Store):
    KIND = EntityKind.CURRENT_USER

    def __init__(
        self,
        api: UsersApi,
        storage: KeyValueStorage,
        *,
        key: str = SESSION_STORAGE_KEY,
        serialize_mutations: bool = True,
    ):
        super().__init__(serialize_mutations=serialize_mutations)
        self.api = api
        self.storage = storage
        self.key = key
        self.current: SingleSlotCache[User] = SingleSlotCache(self.KIND)

    @property
    def current_user(self) -> User | None:
        return self.current.get()

    @property
    def is_authenticated(self) -> bool:
        return self.current.is_set

    def require_user(self) -> User:
        user = self.current.get()
        if user is None:
            raise ValidationError(
                "No hay un usuario autenticado", field="currentUser",
                context=ErrorContext(entity_kind=self.KIND),
            )
        return user

    # --- Local session ----------------------------------------------------------

    def restore(self) -> User | None:
        blob = self.storage.get_item(self.key)
        if blob is None:
            return None
        try:
            user = User.model_validate_json(blob)
        except pydantic.ValidationError as e:
            logger.warning(
                f"Discarding unreadable stored session: {e.error_count()} error(s)",
                extra={"entity_kind": self.KIND.value},
            )
            self.storage.remove_item(self.key)
            return None
        self.current.set(user)
        logger.info(
            "Session restored", extra={"entity_kind": self.KIND.value, "record_id": user.id},
        )
        return user

    def logout(self) -> None:
        self.storage.remove_item(self.key)
        self.current.clear()
        logger.info("Logged out", extra={"entity_kind": self.KIND.value})

    def _remember(self, user: User) -> None:
        self.storage.set_item(self.key, user.model_dump_json(by_alias=True))
        self.current.set(user)

    # --- Remote operations ------------------------------------------------------

    async def login(self, payload: LoginRequest | dict) -> User:
        async with self._mutation(Operation.CREATE):
            payload = validate_payload(LoginRequest, payload, self._ctx(Operation.CREATE))
            user = await self.api.login(payload)
            self._remember(user)
        logger.info(
            "Logged in", extra={"entity_kind": self.KIND.value, "record_id": user.id},
        )
        return user

    async def register(self, payload: RegistrationRequest | dict) -> User:
        async with self._mutation(Operation.CREATE):
            payload = validate_payload(
                RegistrationRequest, payload, self._ctx(Operation.CREATE),
            )
            return await self.api.register(payload)

    async def register_and_login(self, payload: RegistrationRequest | dict) -> User:
        payload = validate_payload(
            RegistrationRequest, payload, self._ctx(Operation.CREATE),
        )
        await self.register(payload)
        return await self.login(LoginRequest(email=payload.email, password=payload.password))

    async def update(self, user_id: UserId, payload: UserUpdate | dict) -> User:
        async with self._mutation(Operation.UPDATE):
            payload = validate_payload(UserUpdate, payload, self._ctx(Operation.UPDATE))
            user = await self.api.update(user_id, payload)
            current = self.current.get()
            if current is not None and current.id == user.id:
                self._remember(user)
        return user

    async def change_password(self, user_id: UserId, payload: PasswordChange | dict) -> None:
        async with self._mutation(Operation.UPDATE):
            payload = validate_payload(PasswordChange, payload, self._ctx(Operation.UPDATE))
            await self.api.change_password(user_id, payload)

    async def activate(self, user_id: UserId) -> None:
        async with self._mutation(Operation.UPDATE):
            await self.api.activate(user_id)

    async def deactivate(self, user_id: UserId) -> None:
        async with self._mutation(Operation.UPDATE):
            await self.api.deactivate(user_id)

    async def list_all(self) -> tuple[User, ...]:
        async with self.status.track(Operation.LIST):
            return await self.api.list_all()

    async def get(self, user_id: UserId) -> User:
        async with self.status.track(Operation.GET_BY_ID):
            return await self.api.get_by_id(user_id)

    def _ctx(self, operation: Operation) -> ErrorContext:
        return ErrorContext(entity_kind=self.KIND, operation=operation)
