"""UID to display-name resolution with a per-cycle retry list."""

import pwd
from collections.abc import Callable

import structlog

from uid_io_monitor.procscan import ProcessNameIndex

log = structlog.get_logger()

# First UID assigned to installed applications (AID_APP_START)
APP_UID_START = 10000

# Shown in reports for UIDs without a resolved name
PLACEHOLDER = "-"


def lookup_account_name(uid: int) -> str | None:
    """Return the account name for uid from the user database, or None."""
    try:
        return pwd.getpwuid(uid).pw_name
    except KeyError:
        return None


class IdentifierResolver:
    """Resolves UIDs to names and caches the results for the process lifetime.

    App-range UIDs resolve through the live process table; lower UIDs
    resolve through the account database. Unresolved UIDs are not
    negatively cached: they go back on the pending list every cycle they
    show activity.
    """

    def __init__(
        self,
        index: ProcessNameIndex | None = None,
        account_lookup: Callable[[int], str | None] = lookup_account_name,
        app_uid_start: int = APP_UID_START,
        debug: bool = False,
    ) -> None:
        self.index = index if index is not None else ProcessNameIndex()
        self.app_uid_start = app_uid_start
        self.debug = debug
        self._account_lookup = account_lookup
        self.cache: dict[int, str] = {}
        self._pending: list[int] = []

    @property
    def pending(self) -> list[int]:
        """UIDs waiting for resolution this cycle (returns a copy)."""
        return list(self._pending)

    def is_app_uid(self, uid: int) -> bool:
        return uid >= self.app_uid_start

    def mark_pending(self, uid: int) -> None:
        """Queue uid for the next drain unless it is already known or queued."""
        if uid in self.cache or uid in self._pending:
            return
        self._pending.append(uid)

    def resolve(self, uid: int) -> str | None:
        """Return the cached name for uid without doing any lookups."""
        return self.cache.get(uid)

    def display_name(self, uid: int) -> str:
        return self.cache.get(uid, PLACEHOLDER)

    def drain_pending(self, force_all: bool = False) -> list[int]:
        """Try to resolve every pending UID, then clear the pending list.

        Args:
            force_all: Rescan the whole process table instead of only new PIDs.

        Returns:
            UIDs that could not be resolved this cycle.
        """
        if not self._pending:
            return []

        self.index.update(force_all=force_all)

        unresolved: list[int] = []
        for uid in self._pending:
            name = self._lookup(uid)
            if name is None:
                unresolved.append(uid)
                continue
            self.cache[uid] = name

        if self.debug and unresolved:
            log.warning("uid_names_unresolved", uids=unresolved)
        self._pending.clear()
        return unresolved

    def _lookup(self, uid: int) -> str | None:
        if self.is_app_uid(uid):
            name = self.index.name_for_uid(uid)
            if name is None and self.debug:
                log.warning("app_uid_not_found", uid=uid)
            return name

        name = self._account_lookup(uid)
        if name is None and self.debug:
            log.warning("account_uid_not_found", uid=uid)
        return name
