"""Bill reminder batch job.

Scans every stored budget, finds bills due exactly
``notification_reminder_days`` days from today and sends each user one
e-mail listing them. A SQLite log keyed on
``(user_id, bill_name, due_date, lead_days)`` keeps reruns on the same day
from sending twice.
"""

from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, List, Optional

import httpx

from . import config
from .errors import EmailDeliveryError
from .formatting import format_currency
from .models import BudgetBill, BudgetState, from_document
from .recurrence import days_until, resolve_due_date
from .storage import BudgetStateStore

logger = logging.getLogger(__name__)

EmailResolver = Callable[[str], Optional[str]]
EmailSender = Callable[[str, str, str], None]


@dataclass(frozen=True)
class DueBill:
    bill: BudgetBill
    due_date: date


@dataclass(frozen=True)
class ReminderMessage:
    subject: str
    text: str


@dataclass
class ReminderRunResult:
    sent: int = 0
    skipped: int = 0
    details: List[Dict[str, Any]] = field(default_factory=list)

    def skip(self, user_id: str, reason: str, **extra) -> None:
        self.skipped += 1
        self.details.append({'user_id': user_id, 'reason': reason, **extra})


class ReminderLog:
    """Record of reminders already sent."""

    def __init__(self, db_path: Optional[Path] = None):
        self.db_path = Path(db_path) if db_path is not None else config.REMINDER_DB_PATH
        self.init_db()

    @contextmanager
    def connect(self) -> Iterator[sqlite3.Connection]:
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(str(self.db_path))
        try:
            yield conn
        finally:
            conn.close()

    def init_db(self) -> None:
        with self.connect() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS bill_reminder_log (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    user_id TEXT NOT NULL,
                    bill_name TEXT NOT NULL,
                    due_date TEXT NOT NULL,
                    lead_days INTEGER NOT NULL,
                    sent_at TEXT NOT NULL,
                    UNIQUE (user_id, bill_name, due_date, lead_days)
                )
                """
            )
            conn.execute(
                "CREATE INDEX IF NOT EXISTS bill_reminder_log_user_id_idx "
                "ON bill_reminder_log (user_id)"
            )
            conn.commit()

    def already_sent(self, user_id: str, bill_name: str, due_date: date, lead_days: int) -> bool:
        with self.connect() as conn:
            row = conn.execute(
                "SELECT 1 FROM bill_reminder_log "
                "WHERE user_id = ? AND bill_name = ? AND due_date = ? AND lead_days = ? "
                "LIMIT 1",
                (user_id, bill_name, due_date.isoformat(), lead_days),
            ).fetchone()
        return row is not None

    def record(self, user_id: str, due: List[DueBill], lead_days: int) -> None:
        sent_at = datetime.now(timezone.utc).isoformat()
        with self.connect() as conn:
            conn.executemany(
                "INSERT OR IGNORE INTO bill_reminder_log "
                "(user_id, bill_name, due_date, lead_days, sent_at) VALUES (?, ?, ?, ?, ?)",
                [
                    (user_id, item.bill.name, item.due_date.isoformat(), lead_days, sent_at)
                    for item in due
                ],
            )
            conn.commit()


def find_due_bills(state: BudgetState, today: date) -> List[DueBill]:
    """Bills whose next due date is exactly the reminder lead time away."""
    lead_days = state.notification_reminder_days
    due = []
    for bill in state.bills:
        due_date = resolve_due_date(bill, today)
        if due_date is not None and days_until(due_date, today) == lead_days:
            due.append(DueBill(bill, due_date))
    return due


def _format_due(value: date) -> str:
    return f"{value:%b} {value.day}"


def compose_reminder(due: List[DueBill], lead_days: int) -> ReminderMessage:
    plural = '' if lead_days == 1 else 's'
    lines = [
        f"{item.bill.name} - due {_format_due(item.due_date)} - {format_currency(item.bill.amount)}"
        for item in due
    ]
    return ReminderMessage(
        subject=f"Upcoming bills due in {lead_days} day{plural}",
        text='\n'.join(lines),
    )


def run_reminders(
    store: BudgetStateStore,
    log: ReminderLog,
    resolve_email: EmailResolver,
    send: EmailSender,
    today: Optional[date] = None,
) -> ReminderRunResult:
    """Send today's bill reminders for every stored budget.

    Args:
        store: Source of budget documents
        log: Idempotency log; a bill already logged for the same due date
            and lead time is not sent again
        resolve_email: Maps a user id to an address (``None`` when unknown)
        send: Called as ``send(to, subject, text)``; raises on failure
        today: Reference date, defaults to the current UTC date

    Returns:
        Counts of users e-mailed and items skipped, with one detail row
        per skip or non-matching bill.
    """
    today = today or datetime.now(timezone.utc).date()
    result = ReminderRunResult()

    for document in store.iter_documents():
        user_id = document['user_id']
        state = from_document(document['data'])
        lead_days = state.notification_reminder_days

        if not state.notification_bill_reminders:
            result.skip(user_id, 'reminders_off')
            continue
        if not state.bills:
            result.skip(user_id, 'no_bills', lead_days=lead_days)
            continue
        email = resolve_email(user_id)
        if not email:
            result.skip(user_id, 'missing_email', lead_days=lead_days)
            continue

        due: List[DueBill] = []
        for bill in state.bills:
            due_date = resolve_due_date(bill, today)
            if due_date is None:
                result.skip(user_id, 'unparsed_date', bill=bill.name, date=bill.date)
                continue
            if days_until(due_date, today) != lead_days:
                continue
            if log.already_sent(user_id, bill.name, due_date, lead_days):
                result.details.append(
                    {'user_id': user_id, 'reason': 'already_sent', 'bill': bill.name}
                )
                continue
            due.append(DueBill(bill, due_date))

        if not due:
            continue

        message = compose_reminder(due, lead_days)
        try:
            send(email, message.subject, message.text)
        except EmailDeliveryError as exc:
            logger.warning("Reminder e-mail to %s failed: %s", user_id, exc)
            result.skip(
                user_id,
                'send_failed',
                bills=[item.bill.name for item in due],
                error=str(exc),
            )
            continue

        log.record(user_id, due, lead_days)
        result.sent += 1
        logger.info("Sent %d bill reminder(s) to %s", len(due), user_id)

    return result


class HttpEmailSender:
    """Send plain-text e-mail through an HTTP e-mail API."""

    def __init__(
        self,
        url: Optional[str] = None,
        api_key: Optional[str] = None,
        sender: Optional[str] = None,
        transport: Optional[httpx.BaseTransport] = None,
        timeout: float = 30.0,
    ):
        self.url = url or config.EMAIL_API_URL
        self.api_key = api_key if api_key is not None else config.EMAIL_API_KEY
        self.sender = sender or config.EMAIL_FROM
        if not self.url or not self.api_key or not self.sender:
            raise ValueError("E-mail API URL, key and sender address must be configured")
        self._transport = transport
        self.timeout = timeout

    def __call__(self, to: str, subject: str, text: str) -> None:
        body = {'from': self.sender, 'to': to, 'subject': subject, 'text': text}
        headers = {'Authorization': f"Bearer {self.api_key}"}
        try:
            with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
                response = client.post(self.url, json=body, headers=headers)
        except httpx.HTTPError as exc:
            raise EmailDeliveryError(f"E-mail API unreachable: {exc}") from exc
        if response.is_error:
            raise EmailDeliveryError(
                f"E-mail API returned {response.status_code}: {response.text[:200]}",
                status_code=response.status_code,
            )
