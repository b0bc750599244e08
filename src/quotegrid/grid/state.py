"""Selection/edit state machine for the quotation grid.

The grid's interactive behaviour is one pure function::

    new_state, commit = transition(state, event, read_text)

``read_text`` gives the stored text of an address and is only consulted
when a cell enters edit mode (the draft always starts from the stored
value).  ``commit`` is non-None when the event finished an edit and the
draft must be written back.

Invariant: ``state.editing`` is either None or equal to ``state.selected``.
"""

from __future__ import annotations

from typing import Annotated, Callable, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from quotegrid.grid.address import clamp, parse_address, to_address


# ────────────────────────────────────────────────────────────────
# State
# ────────────────────────────────────────────────────────────────


class GridState(BaseModel):
    model_config = ConfigDict(frozen=True)

    selected: str | None = None
    editing: str | None = None
    draft: str | None = None


class Commit(BaseModel):
    model_config = ConfigDict(frozen=True)

    addr: str
    text: str


# ────────────────────────────────────────────────────────────────
# Events (discriminated union)
# ────────────────────────────────────────────────────────────────


class Click(BaseModel):
    type: Literal["click"] = "click"
    addr: str


class DoubleClick(BaseModel):
    type: Literal["double_click"] = "double_click"
    addr: str


class KeyPress(BaseModel):
    type: Literal["key"] = "key"
    key: str


class DraftInput(BaseModel):
    type: Literal["draft"] = "draft"
    text: str


class Blur(BaseModel):
    type: Literal["blur"] = "blur"


GridEvent = Annotated[
    Union[Click, DoubleClick, KeyPress, DraftInput, Blur],
    Field(discriminator="type"),
]

ARROW_DELTAS: dict[str, tuple[int, int]] = {
    "ArrowUp": (-1, 0),
    "ArrowDown": (1, 0),
    "ArrowLeft": (0, -1),
    "ArrowRight": (0, 1),
}

ENTER = "Enter"
ESCAPE = "Escape"


def _no_text(addr: str) -> str:
    return ""


# ────────────────────────────────────────────────────────────────
# Transition function
# ────────────────────────────────────────────────────────────────


def _begin_edit(addr: str, read_text: Callable[[str], str]) -> GridState:
    return GridState(selected=addr, editing=addr, draft=read_text(addr))


def _finish_edit(state: GridState) -> tuple[GridState, Commit | None]:
    """Leave edit mode, committing the draft."""
    commit = Commit(addr=state.editing, text=state.draft or "")
    return GridState(selected=state.selected), commit


def _on_key(
    state: GridState,
    key: str,
    read_text: Callable[[str], str],
) -> tuple[GridState, Commit | None]:
    if state.editing is not None:
        if key == ENTER:
            return _finish_edit(state)
        if key == ESCAPE:
            return GridState(selected=state.selected), None
        if len(key) == 1 and key.isprintable():
            return state.model_copy(update={"draft": (state.draft or "") + key}), None
        # Navigation is disabled while a cell is being edited
        return state, None

    if state.selected is None:
        return state, None

    if key == ENTER:
        return _begin_edit(state.selected, read_text), None

    delta = ARROW_DELTAS.get(key)
    if delta is None:
        return state, None
    pos = parse_address(state.selected)
    if pos is None:
        return state, None
    row, col = clamp(pos[0] + delta[0], pos[1] + delta[1])
    return GridState(selected=to_address(row, col)), None


def transition(
    state: GridState,
    event: Click | DoubleClick | KeyPress | DraftInput | Blur,
    read_text: Callable[[str], str] = _no_text,
) -> tuple[GridState, Commit | None]:
    """Apply one input event to *state*.

    Malformed addresses and events that make no sense in the current
    state leave the state unchanged.
    """
    if isinstance(event, (Click, DoubleClick)):
        if parse_address(event.addr) is None:
            return state, None
        if isinstance(event, DoubleClick) and state.editing == event.addr:
            return state, None
        commit = None
        if state.editing is not None:
            # A pointer press elsewhere blurs the editor first
            state, commit = _finish_edit(state)
        if isinstance(event, Click):
            return GridState(selected=event.addr), commit
        return _begin_edit(event.addr, read_text), commit

    if isinstance(event, KeyPress):
        return _on_key(state, event.key, read_text)

    if isinstance(event, DraftInput):
        if state.editing is None:
            return state, None
        return state.model_copy(update={"draft": event.text}), None

    if isinstance(event, Blur):
        if state.editing is None:
            return state, None
        return _finish_edit(state)

    return state, None
