"""Transition-table state machine shared by quotations, invoices and reminders.

A table maps ``from_status -> {action -> Transition}``. A transition either
moves the entity to ``to_status`` or, when ``to_status`` is ``None``, only
authorizes an in-place operation (editing fields, deleting a draft). Every
rejection raises :class:`InvalidStateException` with the action's message and
leaves the entity untouched.
"""

from __future__ import annotations

import enum
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from stockflow.exceptions import InvalidStateException

logger = logging.getLogger(__name__)

S = TypeVar("S", bound=enum.Enum)
A = TypeVar("A", bound=enum.Enum)

Hook = Callable[..., None]


@dataclass(frozen=True)
class Transition(Generic[S]):
    to_status: S | None = None
    hook: Hook | None = None


class StateMachine(Generic[S, A]):
    def __init__(
        self,
        entity_kind: str,
        transitions: Mapping[S, Mapping[A, Transition[S]]],
        messages: Mapping[A, str] | None = None,
        status_attr: str = "status",
    ) -> None:
        self.entity_kind = entity_kind
        self.transitions = transitions
        self.messages = messages or {}
        self.status_attr = status_attr

    def ensure(self, entity: Any, action: A) -> Transition[S]:
        """Return the transition for ``action`` or raise InvalidStateException."""
        status = getattr(entity, self.status_attr)
        transition = self.transitions.get(status, {}).get(action)
        if transition is None:
            raise InvalidStateException(
                self._message(action, status),
                details=[
                    {
                        "field": self.status_attr,
                        "message": f"{self.entity_kind} status is '{status.value}'",
                    }
                ],
            )
        return transition

    def apply(self, entity: Any, action: A, **context: Any) -> S:
        """Validate ``action``, run its hook, then write the new status.

        The hook runs before the status write, so a failing hook leaves the
        status unchanged. Returns the resulting status.
        """
        transition = self.ensure(entity, action)
        old_status = getattr(entity, self.status_attr)

        if transition.hook is not None:
            transition.hook(entity, **context)

        if transition.to_status is None:
            return old_status

        setattr(entity, self.status_attr, transition.to_status)
        logger.debug(
            "%s %s: %s -> %s",
            self.entity_kind,
            action.value,
            old_status.value,
            transition.to_status.value,
        )
        return transition.to_status

    def _message(self, action: A, status: S) -> str:
        template = self.messages.get(action)
        if template is None:
            return (
                f"Cannot perform '{action.value}' on {self.entity_kind} "
                f"in status '{status.value}'"
            )
        return template.format(status=status.value, action=action.value)
