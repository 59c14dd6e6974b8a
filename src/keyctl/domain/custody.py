"""Custody state machine for the shared room key.

Four states, four actions. Every action is a total function of the
current state: an action that does not apply returns the state unchanged,
so callers can always re-render whatever state comes back.

Operator mode means a separate control panel opens and closes the room.
In that mode only borrow/return are tracked and OPEN/CLOSED are never
entered.
"""

from __future__ import annotations

from collections.abc import Callable
from enum import StrEnum


class CustodyState(StrEnum):
    """Who currently has rights over the key."""

    RETURNED = "returned"
    BORROWED = "borrowed"
    OPEN = "open"
    CLOSED = "closed"


class KeyAction(StrEnum):
    """Actions a user can request against the key."""

    BORROW = "borrow"
    OPEN = "open"
    CLOSE = "close"
    RETURN = "return"


class InvalidTagError(ValueError):
    """Raised for a state or action tag outside the known set."""


# --- Presence tags broadcast per state ---

PRESENCE: dict[CustodyState, str] = {
    CustodyState.RETURNED: "invisible",
    CustodyState.BORROWED: "idle",
    CustodyState.OPEN: "online",
    CustodyState.CLOSED: "idle",
}


# --- Transition functions ---


def borrow_key(state: CustodyState, operator_mode: bool = False) -> CustodyState:
    """RETURNED -> BORROWED."""
    return CustodyState.BORROWED if state is CustodyState.RETURNED else state


def open_room(state: CustodyState, operator_mode: bool = False) -> CustodyState:
    """BORROWED | CLOSED -> OPEN, unless in operator mode."""
    if state in (CustodyState.BORROWED, CustodyState.CLOSED) and not operator_mode:
        return CustodyState.OPEN
    return state


def close_room(state: CustodyState, operator_mode: bool = False) -> CustodyState:
    """OPEN -> CLOSED, unless in operator mode."""
    if state is CustodyState.OPEN and not operator_mode:
        return CustodyState.CLOSED
    return state


def return_key(state: CustodyState, operator_mode: bool = False) -> CustodyState:
    """BORROWED | CLOSED -> RETURNED."""
    if state in (CustodyState.BORROWED, CustodyState.CLOSED):
        return CustodyState.RETURNED
    return state


OPERATIONS: dict[KeyAction, Callable[[CustodyState, bool], CustodyState]] = {
    KeyAction.BORROW: borrow_key,
    KeyAction.OPEN: open_room,
    KeyAction.CLOSE: close_room,
    KeyAction.RETURN: return_key,
}


def parse_state(tag: CustodyState | str) -> CustodyState:
    """Coerce *tag* to a CustodyState or raise InvalidTagError."""
    try:
        return CustodyState(tag)
    except ValueError as exc:
        msg = f"Unknown custody state: {tag!r}"
        raise InvalidTagError(msg) from exc


def parse_action(tag: KeyAction | str) -> KeyAction:
    """Coerce *tag* to a KeyAction or raise InvalidTagError."""
    try:
        return KeyAction(tag)
    except ValueError as exc:
        msg = f"Unknown key action: {tag!r}"
        raise InvalidTagError(msg) from exc


def transition(
    state: CustodyState | str,
    action: KeyAction | str,
    operator_mode: bool = False,
) -> CustodyState:
    """Apply *action* to *state* and return the resulting state.

    Invalid actions for the current state are no-ops. Unknown tags are
    caller bugs and raise :class:`InvalidTagError`.
    """
    current = parse_state(state)
    operation = OPERATIONS[parse_action(action)]
    return operation(current, operator_mode)


def available_actions(state: CustodyState, operator_mode: bool = False) -> list[KeyAction]:
    """Actions that would change *state* (what a binding should offer)."""
    return [
        action
        for action, operation in OPERATIONS.items()
        if operation(state, operator_mode) is not state
    ]


def presence_for(state: CustodyState) -> str:
    """Presence tag to broadcast while the key is in *state*."""
    return PRESENCE[parse_state(state)]
