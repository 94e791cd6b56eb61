"""
LDAP Bridge State Machine Base

Generic base for the step-by-step protocols the bridge runs. A subclass
declares its transition table; the base enforces it:

- Only transitions in the table are taken, anything else is refused
- Registered invariants are checked against the would-be next state
  before it is committed
- Every committed transition is appended to a trace whose snapshots
  leave out secrets (fields declared with repr=False)

A machine lives for exactly one authentication run and is discarded
afterwards.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from enum import Enum
from typing import (
    Any,
    Callable,
    Dict,
    Generic,
    List,
    Tuple,
    TypeVar,
)

import attrs
import structlog
from returns.result import Failure, Result, Success

from ldapbridge.core.exceptions import InvariantViolation

logger = structlog.get_logger()


S = TypeVar("S", bound=Enum)  # State type
E = TypeVar("E")  # Event type
C = TypeVar("C")  # Context type


@attrs.define(frozen=True, slots=True)
class Transition(Generic[S, E]):
    """One committed step of a run."""

    from_state: S
    event_type: str
    to_state: S
    timestamp: datetime
    context_snapshot: Dict[str, Any] = attrs.Factory(dict)
    event_data: Dict[str, Any] = attrs.Factory(dict)

    def to_dict(self) -> Dict[str, Any]:
        """Plain-dict form for structured log events."""
        return {
            "from_state": self.from_state.name,
            "event_type": self.event_type,
            "to_state": self.to_state.name,
            "timestamp": self.timestamp.isoformat(),
            "context_snapshot": self.context_snapshot,
            "event_data": self.event_data,
        }


# (state, context) -> holds?
InvariantFn = Callable[[S, Any], bool]

# next_state, (event, context) -> new context
TransitionEntry = Tuple[S, Callable[[Any, Any], Any]]


def snapshot(value: Any) -> Dict[str, Any]:
    """
    Secret-free dict view of an attrs instance.

    Private fields and fields declared with repr=False are dropped;
    enums are reduced to their names. Non-attrs values only record their
    type name.
    """
    if not attrs.has(type(value)):
        return {"type": type(value).__name__}
    return attrs.asdict(
        value,
        filter=lambda attribute, _: attribute.repr and not attribute.name.startswith("_"),
        value_serializer=_serialize_value,
    )


def _serialize_value(inst: type, attribute: attrs.Attribute, value: Any) -> Any:  # noqa: ARG001
    if isinstance(value, Enum):
        return value.name
    if isinstance(value, datetime):
        return value.isoformat()
    return value


@attrs.define
class StateMachineBase(ABC, Generic[S, E, C]):
    """
    Table-driven state machine with invariant checks.

    Usage:
        class LookupMachine(StateMachineBase[LookupState, Any, LookupContext]):
            def initial_state(self) -> LookupState:
                return LookupState.IDLE

            def transition_table(self) -> Dict[Tuple[LookupState, type], TransitionEntry]:
                return {
                    (LookupState.IDLE, Started): (
                        LookupState.RUNNING,
                        self._handle_started,
                    ),
                }

            @staticmethod
            def _handle_started(event: Started, ctx: LookupContext) -> LookupContext:
                return attrs.evolve(ctx, target=event.target)
    """

    _context: C = attrs.field(alias="_context")
    _state: S = attrs.field(
        default=attrs.Factory(lambda self: self.initial_state(), takes_self=True),
        alias="_state",
    )
    _history: List[Transition[S, E]] = attrs.field(factory=list, alias="_history")
    _invariants: List[Tuple[str, InvariantFn]] = attrs.field(factory=list, alias="_invariants")
    _logger: Any = attrs.field(factory=lambda: structlog.get_logger(), alias="_logger")

    @abstractmethod
    def initial_state(self) -> S:
        """State a new machine starts in unless one is given."""
        ...

    @abstractmethod
    def transition_table(
        self,
    ) -> Dict[Tuple[S, type], TransitionEntry]:
        """
        Map (current_state, event_type) to (next_state, context_updater).

        A context_updater takes the event and the current context and
        returns the next context. It must not do I/O.
        """
        ...

    @property
    def state(self) -> S:
        return self._state

    @property
    def context(self) -> C:
        return self._context

    def process_event(self, event: E) -> Result[S, str]:
        """
        Apply an event to the current state.

        Returns:
            Success(next_state) once the transition is committed
            Failure(reason) if the table has no entry for the event in
            the current state, or the context updater raised

        Raises:
            InvariantViolation: the next state would break an invariant;
            nothing is committed
        """
        event_name = type(event).__name__
        entry = self.transition_table().get((self._state, type(event)))
        if entry is None:
            self._logger.warning(
                "transition_refused",
                state=self._state.name,
                event_type=event_name,
            )
            return Failure(f"No transition for state {self._state.name} with event {event_name}")

        next_state, update = entry
        try:
            next_context = update(event, self._context)
        except Exception as e:
            self._logger.error(
                "transition_handler_failed",
                state=self._state.name,
                event_type=event_name,
                error=str(e),
            )
            return Failure(f"Context update failed: {e}")

        self._check_invariants(next_state, next_context)
        self._commit(event, next_state, next_context)
        return Success(next_state)

    def _check_invariants(self, next_state: S, next_context: C) -> None:
        broken = [name for name, holds in self._invariants if not holds(next_state, next_context)]
        if broken:
            self._logger.error(
                "invariant_violated",
                invariants=broken,
                from_state=self._state.name,
                to_state=next_state.name,
            )
            raise InvariantViolation(f"Invariant '{broken[0]}' violated")

    def _commit(self, event: E, next_state: S, next_context: C) -> None:
        self._history.append(
            Transition(
                from_state=self._state,
                event_type=type(event).__name__,
                to_state=next_state,
                timestamp=datetime.now(timezone.utc),
                context_snapshot=snapshot(next_context),
                event_data=snapshot(event),
            )
        )
        self._logger.debug(
            "state_transition",
            from_state=self._state.name,
            to_state=next_state.name,
            event_type=type(event).__name__,
        )
        self._state = next_state
        self._context = next_context

    def add_invariant(self, name: str, invariant: InvariantFn) -> None:
        """Check invariant(state, context) before every future commit."""
        self._invariants.append((name, invariant))

    def get_trace(self) -> List[Transition[S, E]]:
        """Copy of the committed transitions, oldest first."""
        return list(self._history)

    def state_path(self) -> List[str]:
        """Names of every state visited, initial state first."""
        if not self._history:
            return [self._state.name]
        return [self._history[0].from_state.name] + [t.to_state.name for t in self._history]
