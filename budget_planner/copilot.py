"""Copilot conversation and the pending-proposal state machine.

Nothing the copilot proposes is applied automatically. Each user message
may stage exactly one :class:`Proposal`; the user then confirms or
discards it::

    IDLE -> PENDING -> APPLIED
                    -> DISCARDED

Sending a new message while a proposal is pending discards it first, so
there is never more than one live proposal and never a partial apply.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, FrozenSet, List, Mapping, Optional, Sequence, Tuple

from .assistant import AssistantClient, ChatMessage, history_from_dicts
from .bill_parser import ParsedBill, merge_parsed_bills, parse_bill_text
from .commands import classify_command, describe_actions
from .errors import AssistantError, NoPendingProposalError
from .models import BudgetState, to_document
from .normalizer import LocalAction, apply_local_action, apply_update

logger = logging.getLogger(__name__)

DEFAULT_SUMMARY = 'Apply these suggested updates?'


class ProposalStatus(str, Enum):
    IDLE = 'idle'
    PENDING = 'pending'
    APPLIED = 'applied'
    DISCARDED = 'discarded'


class ProposalSource(str, Enum):
    ASSISTANT = 'assistant'
    BULK_PASTE = 'bulk_paste'
    COMMAND = 'command'


@dataclass(frozen=True)
class Proposal:
    source: ProposalSource
    summary: str
    patch: Optional[Dict[str, Any]] = None
    actions: FrozenSet[LocalAction] = field(default_factory=frozenset)
    bills: Tuple[ParsedBill, ...] = ()

    def apply(self, state: BudgetState) -> BudgetState:
        """Apply to the state current at confirm time, not the one it was staged on."""
        if self.actions:
            return apply_local_action(state, self.actions)
        if self.bills:
            return merge_parsed_bills(state, self.bills)
        return apply_update(state, self.patch)


@dataclass
class ChatTurn:
    """Outcome of one user message."""

    reply: Optional[str]
    proposal: Optional[Proposal] = None
    notice: Optional[str] = None


class CopilotSession:
    """One user's copilot conversation over their budget state.

    Args:
        state: Current canonical budget state
        client: Budget coach client; without one only local commands and
            bulk paste are understood
        on_change: Called with the new state after a proposal is applied
        history: Earlier messages as ``{"role", "content"}`` mappings
    """

    def __init__(
        self,
        state: BudgetState,
        client: Optional[AssistantClient] = None,
        on_change: Optional[Callable[[BudgetState], None]] = None,
        history: Sequence[Mapping[str, Any]] = (),
    ):
        self.state = state
        self.client = client
        self.on_change = on_change
        self.messages: List[ChatMessage] = history_from_dicts(history)
        self.proposal: Optional[Proposal] = None
        self.status = ProposalStatus.IDLE

    @property
    def has_pending(self) -> bool:
        return self.status is ProposalStatus.PENDING

    def _stage(self, proposal: Proposal) -> Proposal:
        self.proposal = proposal
        self.status = ProposalStatus.PENDING
        return proposal

    def _reply(self, text: str) -> str:
        self.messages.append(ChatMessage('assistant', text))
        return text

    def discard(self) -> None:
        if not self.has_pending:
            raise NoPendingProposalError("There is no pending update to discard.")
        self.proposal = None
        self.status = ProposalStatus.DISCARDED

    def confirm(self) -> BudgetState:
        """Apply the pending proposal and return the new canonical state."""
        if not self.has_pending or self.proposal is None:
            raise NoPendingProposalError("There is no pending update to apply.")
        self.state = self.proposal.apply(self.state)
        self.proposal = None
        self.status = ProposalStatus.APPLIED
        if self.on_change is not None:
            self.on_change(self.state)
        return self.state

    def send(self, text: str) -> ChatTurn:
        """Handle one user message.

        Local commands and bulk-pasted bill lists are recognized first and
        never reach the coach. Anything else is sent to the coach; a failed
        call produces a notice and the conversation carries on.
        """
        content = text.strip() if isinstance(text, str) else ''
        if not content:
            return ChatTurn(reply=None)

        if self.has_pending:
            logger.debug("Discarding pending %s proposal", self.proposal.source.value)
            self.proposal = None
            self.status = ProposalStatus.DISCARDED
        self.messages.append(ChatMessage('user', content))

        actions = classify_command(content)
        if actions:
            summary = f"Ready to {describe_actions(actions)}. Confirm to apply."
            proposal = self._stage(Proposal(ProposalSource.COMMAND, summary, actions=actions))
            return ChatTurn(reply=self._reply(summary), proposal=proposal)

        parsed = parse_bill_text(content)
        if parsed:
            names = ', '.join(item.name for item in parsed)
            summary = f"Add or update {len(parsed)} bills: {names}?"
            proposal = self._stage(
                Proposal(ProposalSource.BULK_PASTE, summary, bills=tuple(parsed))
            )
            return ChatTurn(reply=self._reply(summary), proposal=proposal)

        if self.client is None:
            return ChatTurn(reply=None, notice='Budget Copilot is not configured.')

        try:
            answer = self.client.ask(self.messages, to_document(self.state))
        except AssistantError as exc:
            return ChatTurn(reply=None, notice=str(exc))

        reply = self._reply(answer.reply)
        if answer.error or not answer.has_updates:
            return ChatTurn(reply=reply)
        proposal = self._stage(Proposal(
            ProposalSource.ASSISTANT,
            answer.summary or DEFAULT_SUMMARY,
            patch=answer.updates,
        ))
        return ChatTurn(reply=reply, proposal=proposal)
