"""Record store: the single owner of the live user and charge collections.

The store reads from and writes to two collaborators. The local cache
(:class:`~cobros.storage.LocalStorage`) is always written. The remote backend,
when one was supplied, is the source of truth for loads and receives every
write after the local cache has been updated. Which of the two modes applies
is fixed when the store is built and exposed as ``store.mode``.

Ids are generated locally, so memory and the local cache always change
before any remote call. Remote failures never undo a local change. They are
logged and published as ``PERSISTENCE_WARNING`` events on ``store.bus``, as
are local records that cannot be parsed. Those are kept as stored and written
back with every save.
"""

from dataclasses import replace
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Tuple, Union

from cobros.config import DEFAULT_SEED_PATH, Settings
from cobros.domain import (
    Charge,
    User,
    charge_from_record,
    to_record,
    user_from_record,
)
from cobros.errors import NotFound, PersistenceError, ValidationError
from cobros.events import (
    CHARGE_ADDED,
    CHARGE_DELETED,
    CHARGE_UPDATED,
    PERSISTENCE_WARNING,
    USER_ADDED,
    USER_DELETED,
    EventBus,
)
from cobros.functional import Maybe, find_by_id
from cobros.logging_setup import get_logger
from cobros.storage import (
    CHARGES_KEY,
    USERS_KEY,
    LocalStorage,
    RemoteBackend,
    generate_id,
)
from cobros.transforms import (
    append_item,
    load_seed,
    prepend_item,
    remove_item,
    replace_item,
    user_total,
)
from cobros.validation import raise_if_invalid, validate_charge_fields, validate_user

logger = get_logger("cobros.store")

CHARGE_MUTABLE_FIELDS = (
    "user_id",
    "amount",
    "description",
    "slip_number",
    "slip_date",
    "voucher_number",
    "voucher_date",
)


class SourceMode(str, Enum):
    REMOTE = "remote"
    LOCAL = "local"


def utc_timestamp() -> str:
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _without_id(record: dict) -> dict:
    return {k: v for k, v in record.items() if k != "id"}


def _by_recorded_at_desc(charges) -> Tuple[Charge, ...]:
    return tuple(sorted(charges, key=lambda c: c.recorded_at or "", reverse=True))


class RecordStore:
    def __init__(
        self,
        local: LocalStorage,
        remote: Optional[RemoteBackend] = None,
        *,
        bus: Optional[EventBus] = None,
        seed_path: Union[str, Path, None] = DEFAULT_SEED_PATH,
        clock: Callable[[], str] = utc_timestamp,
    ):
        self._local = local
        self._remote = remote
        self.mode = SourceMode.REMOTE if remote is not None else SourceMode.LOCAL
        self.bus = bus or EventBus()
        self._seed_path = seed_path
        self._clock = clock
        self._users: Tuple[User, ...] = ()
        self._charges: Tuple[Charge, ...] = ()
        self._unreadable: Dict[str, List[dict]] = {USERS_KEY: [], CHARGES_KEY: []}

    # -- snapshots -----------------------------------------------------------

    @property
    def users(self) -> Tuple[User, ...]:
        return self._users

    @property
    def charges(self) -> Tuple[Charge, ...]:
        return self._charges

    def get_user(self, user_id: str) -> Maybe[User]:
        return find_by_id(self._users, user_id)

    def get_charge(self, charge_id: str) -> Maybe[Charge]:
        return find_by_id(self._charges, charge_id)

    def user_total(self, user_id: str) -> Decimal:
        return user_total(self._charges, user_id)

    # -- persistence helpers -------------------------------------------------

    def _warn(self, operation: str, exc: BaseException) -> PersistenceError:
        err = PersistenceError(operation, exc)
        logger.warning("%s; keeping the local copy", err)
        self.bus.publish(PERSISTENCE_WARNING, {
            "operation": operation,
            "message": str(exc),
            "error": err,
        })
        return err

    def _set_users(self, users: Tuple[User, ...]) -> None:
        self._local.write(USERS_KEY, [to_record(u) for u in users] + self._unreadable[USERS_KEY])
        self._users = users

    def _set_charges(self, charges: Tuple[Charge, ...]) -> None:
        self._local.write(CHARGES_KEY, [to_record(c) for c in charges] + self._unreadable[CHARGES_KEY])
        self._charges = charges

    async def _send(self, operation: str, call: Callable[[], Awaitable[None]]) -> None:
        """Forward a change that is already applied locally to the remote."""
        if self.mode != SourceMode.REMOTE:
            return
        try:
            await call()
        except Exception as e:  # any backend failure leaves the local copy in place
            self._warn(operation, e)

    # -- loading -------------------------------------------------------------

    def _read_local(self, key: str, parse: Callable[[dict], Any]) -> tuple:
        items, unreadable = [], []
        for record in self._local.read(key):
            try:
                items.append(parse(record))
            except (KeyError, TypeError, ValueError) as e:
                logger.error("Skipping malformed local %s record %r: %s", key, record, e)
                unreadable.append(record)
        self._unreadable[key] = unreadable
        if unreadable:
            self._warn(f"load local {key}", ValueError(f"{len(unreadable)} unreadable records kept as stored"))
        return tuple(items)

    def _local_users(self) -> Tuple[User, ...]:
        users = self._read_local(USERS_KEY, user_from_record)
        if users or self._seed_path is None:
            return users
        users, _ = load_seed(self._seed_path)
        self._set_users(users)
        logger.info("Seeded %d demo users into the local cache", len(users))
        return users

    async def load_users(self) -> Tuple[User, ...]:
        if self.mode == SourceMode.REMOTE:
            try:
                docs = await self._remote.get_all(USERS_KEY)
                users = tuple(user_from_record(d) for d in docs)
            except Exception as e:  # network, parse: fall back to the cache
                self._warn("load users", e)
            else:
                self._set_users(users)
                logger.info("Loaded %d users from remote", len(users))
                return self._users
        self._users = self._local_users()
        return self._users

    async def load_charges(self) -> Tuple[Charge, ...]:
        if self.mode == SourceMode.REMOTE:
            try:
                docs = await self._remote.query_ordered(CHARGES_KEY, "recorded_at", descending=True)
                charges = tuple(charge_from_record(d) for d in docs)
            except Exception as e:  # network, parse: fall back to the cache
                self._warn("load charges", e)
            else:
                self._set_charges(charges)
                logger.info("Loaded %d charges from remote", len(charges))
                return self._charges
        self._charges = _by_recorded_at_desc(self._read_local(CHARGES_KEY, charge_from_record))
        return self._charges

    async def load(self) -> None:
        await self.load_users()
        await self.load_charges()

    # -- users ---------------------------------------------------------------

    async def add_user(self, data: Mapping[str, Any]) -> User:
        fields = raise_if_invalid(validate_user(data))
        user = User(id=generate_id(), created_at=self._clock(), **fields)
        self._set_users(append_item(self._users, user))
        await self._send("add user", lambda: self._remote.add(USERS_KEY, user.id, _without_id(to_record(user))))
        logger.info("Added user %s (%s)", user.id, user.kind.value)
        self.bus.publish(USER_ADDED, {"user": user, "mode": self.mode.value})
        return user

    async def delete_user(self, user_id: str) -> bool:
        """Remove a user. Charges keep pointing at the old id and name."""
        if not self.get_user(user_id).is_some():
            return False
        self._set_users(remove_item(self._users, user_id))
        await self._send("delete user", lambda: self._remote.delete(USERS_KEY, user_id))
        logger.info("Deleted user %s", user_id)
        self.bus.publish(USER_DELETED, {"user_id": user_id, "mode": self.mode.value})
        return True

    # -- charges -------------------------------------------------------------

    async def add_charge(self, data: Mapping[str, Any]) -> Charge:
        user_id = str(data.get("user_id") or "").strip()
        if not user_id:
            raise ValidationError("user_id", "A user is required")
        owner = self.get_user(user_id).to_optional()
        if owner is None:
            raise NotFound("user", user_id)

        fields = raise_if_invalid(validate_charge_fields(owner.kind, data))
        charge = Charge(
            id=generate_id(),
            user_id=owner.id,
            user_name=owner.name,
            kind=owner.kind,
            recorded_at=self._clock(),
            **fields,
        )
        self._set_charges(prepend_item(self._charges, charge))
        await self._send("add charge", lambda: self._remote.add(CHARGES_KEY, charge.id, _without_id(to_record(charge))))
        logger.info("Added charge %s for user %s", charge.id, charge.user_id)
        self.bus.publish(CHARGE_ADDED, {"charge": charge, "mode": self.mode.value})
        return charge

    async def update_charge(self, charge_id: str, data: Mapping[str, Any]) -> Charge:
        """Merge ``data`` into an existing charge and re-validate it.

        Kind and user name follow the current owner. When the owner no longer
        exists the charge keeps its stored kind and name snapshot.
        """
        existing = self.get_charge(charge_id).to_optional()
        if existing is None:
            raise NotFound("charge", charge_id)

        merged = to_record(existing)
        merged.update({k: v for k, v in data.items() if k in CHARGE_MUTABLE_FIELDS})
        owner_id = str(merged.get("user_id") or "").strip()
        if not owner_id:
            raise ValidationError("user_id", "A user is required")
        owner = self.get_user(owner_id).to_optional()
        if owner is None and owner_id != existing.user_id:
            raise NotFound("user", owner_id)
        kind = owner.kind if owner else existing.kind
        user_name = owner.name if owner else existing.user_name

        fields = raise_if_invalid(validate_charge_fields(kind, merged))
        updated = replace(
            existing,
            user_id=owner_id,
            user_name=user_name,
            kind=kind,
            updated_at=self._clock(),
            **fields,
        )
        self._set_charges(replace_item(self._charges, updated))
        await self._send("update charge", lambda: self._remote.update(CHARGES_KEY, charge_id, _without_id(to_record(updated))))
        logger.info("Updated charge %s", charge_id)
        self.bus.publish(CHARGE_UPDATED, {"charge": updated, "mode": self.mode.value})
        return updated

    async def delete_charge(self, charge_id: str) -> bool:
        if not self.get_charge(charge_id).is_some():
            return False
        self._set_charges(remove_item(self._charges, charge_id))
        await self._send("delete charge", lambda: self._remote.delete(CHARGES_KEY, charge_id))
        logger.info("Deleted charge %s", charge_id)
        self.bus.publish(CHARGE_DELETED, {"charge_id": charge_id, "mode": self.mode.value})
        return True


def open_store(settings: Settings, remote: Optional[RemoteBackend] = None, bus: Optional[EventBus] = None) -> RecordStore:
    return RecordStore(
        LocalStorage(settings.data_dir),
        remote,
        bus=bus,
        seed_path=settings.seed_path,
    )
