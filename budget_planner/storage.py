"""Budget state storage.

One JSON document per user, shaped ``{"user_id", "data", "updated_at"}``
where ``data`` is the camelCase document from
:func:`budget_planner.models.to_document`. Writes are atomic (temporary
file then rename) and the last writer wins.

:class:`DebouncedSaver` collapses a burst of edits into one write after a
quiet period.
"""

from __future__ import annotations

import json
import logging
import os
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, Optional

from . import config
from .errors import StorageError
from .formatting import safe_filename
from .models import BudgetState, default_state, from_document, to_document

logger = logging.getLogger(__name__)

SAVE_FAILED_NOTICE = 'Save failed. Check connection.'


class BudgetStateStore:
    """Handles budget state file storage operations."""

    def __init__(self, states_dir: Optional[Path] = None):
        """Initialize the store.

        Args:
            states_dir: Optional custom directory for state documents.
                        Defaults to STATES_DIR from config.
        """
        self.states_dir = Path(states_dir) if states_dir is not None else config.STATES_DIR
        self.states_dir.mkdir(parents=True, exist_ok=True)

    def get_path(self, user_id: str) -> Path:
        return self.states_dir / f"{safe_filename(user_id, default='anonymous')}.json"

    def _read(self, path: Path) -> Optional[Dict[str, Any]]:
        try:
            with path.open('r', encoding='utf-8') as handle:
                payload = json.load(handle)
        except (json.JSONDecodeError, OSError) as exc:
            logger.warning("Could not read budget state %s: %s", path.name, exc)
            return None
        if not isinstance(payload, dict) or not isinstance(payload.get('data'), dict):
            logger.warning("Ignoring malformed budget state %s", path.name)
            return None
        return payload

    def load(self, user_id: str) -> Optional[BudgetState]:
        """Load a user's state, or ``None`` when missing or unreadable."""
        path = self.get_path(user_id)
        if not path.exists():
            return None
        payload = self._read(path)
        if payload is None:
            return None
        return from_document(payload['data'])

    def load_or_create(self, user_id: str) -> BudgetState:
        """Load a user's state, seeding and saving the default when there is none."""
        state = self.load(user_id)
        if state is None:
            state = default_state()
            self.upsert(user_id, state)
        return state

    def upsert(self, user_id: str, state: BudgetState) -> Path:
        """Write the full state document for ``user_id``.

        Raises:
            ValueError: If the user id is empty
            StorageError: If the file cannot be written
        """
        if not user_id or not str(user_id).strip():
            raise ValueError("User id cannot be empty")

        payload = {
            'user_id': str(user_id),
            'data': to_document(state),
            'updated_at': datetime.now(timezone.utc).isoformat(),
        }
        target = self.get_path(user_id)
        tmp = target.with_suffix('.json.tmp')
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            with tmp.open('w', encoding='utf-8') as handle:
                json.dump(payload, handle, indent=2, sort_keys=True)
            os.replace(tmp, target)
        except OSError as exc:
            raise StorageError(f"Failed to save budget state to {target}: {exc}") from exc
        logger.debug("Saved budget state for %s", user_id)
        return target

    def iter_documents(self) -> Iterator[Dict[str, Any]]:
        """Yield every readable ``{"user_id", "data"}`` document, skipping bad files."""
        if not self.states_dir.exists():
            return
        for path in sorted(self.states_dir.glob('*.json')):
            payload = self._read(path)
            if payload is None:
                continue
            yield {
                'user_id': str(payload.get('user_id') or path.stem),
                'data': payload['data'],
            }


class DebouncedSaver:
    """Persist the latest state once edits have been quiet for ``delay`` seconds.

    Each :meth:`schedule` call supersedes the pending write. A failed write
    leaves the in-memory state untouched, sends a notice and returns the
    saver to ``idle``.
    """

    IDLE = 'idle'
    SAVING = 'saving'
    SAVED = 'saved'

    def __init__(
        self,
        store: BudgetStateStore,
        user_id: str,
        delay: Optional[float] = None,
        on_notice: Optional[Callable[[str], None]] = None,
    ):
        self.store = store
        self.user_id = user_id
        self.delay = config.SAVE_DEBOUNCE_SECONDS if delay is None else delay
        self.on_notice = on_notice
        self.status = self.IDLE
        self._lock = threading.Lock()
        self._timer: Optional[threading.Timer] = None
        self._pending: Optional[BudgetState] = None

    def schedule(self, state: BudgetState) -> None:
        with self._lock:
            self._cancel_timer()
            if not state.auto_save_enabled:
                self._pending = None
                self.status = self.IDLE
                return
            self._pending = state
            self._timer = threading.Timer(self.delay, self.flush)
            self._timer.daemon = True
            self._timer.start()

    def flush(self) -> bool:
        """Write the pending state now. Returns True when something was saved."""
        with self._lock:
            self._cancel_timer()
            state, self._pending = self._pending, None
            if state is None:
                return False
            self.status = self.SAVING
            try:
                self.store.upsert(self.user_id, state)
            except StorageError as exc:
                logger.error("Auto-save failed for %s: %s", self.user_id, exc)
                self.status = self.IDLE
                if self.on_notice is not None:
                    self.on_notice(SAVE_FAILED_NOTICE)
                return False
            self.status = self.SAVED
            return True

    def cancel(self) -> None:
        with self._lock:
            self._cancel_timer()
            self._pending = None
            self.status = self.IDLE

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
