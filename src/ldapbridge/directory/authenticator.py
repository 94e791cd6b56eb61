"""
LDAP Bridge Directory Authenticator

Runs the three-step directory protocol for one AuthAttempt:

1. Connect to the directory address and bind as the service account
2. Subtree-search the base DN for exactly one user entry
3. Rebind the same connection as that entry with the user's password

Each step is a state transition; the first failing step ends the run.
The password is checked only by the directory server's bind, never by
local comparison.

States:
    INITIAL -> CONNECTED -> SERVICE_BOUND -> USER_LOCATED -> VERIFIED
    any non-terminal state -> FAILED

Note: the domain segment of a qualified identity does not scope the
search. Deployments with several realms sharing a base DN can collide
on uid.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

import attrs
import structlog
from returns.result import Failure
from ldap3.utils.conv import escape_filter_chars

from ldapbridge.core.exceptions import BindError, ConnectError, SearchError, StateError
from ldapbridge.core.state_machine import StateMachineBase, TransitionEntry
from ldapbridge.core.types import AuthAttempt, DirectoryOutcome, FailureReason
from ldapbridge.directory.client import Directory, DirectoryConnection
from ldapbridge.directory.types import (
    USER_ID_ATTRIBUTE,
    USER_OBJECT_CLASS,
    ConnectionOpened,
    DirectoryContext,
    DirectoryState,
    PasswordVerified,
    ServiceAccountBound,
    StepFailed,
    UserLocated,
)

logger = structlog.get_logger()


# Failure reasons that are infrastructure errors rather than rejections.
TRANSIENT_REASONS = frozenset({
    FailureReason.CONNECT,
    FailureReason.SERVICE_BIND,
    FailureReason.SEARCH,
    FailureReason.TIMEOUT,
})


def build_user_filter(local_part: str) -> str:
    """
    Build the search filter for a user's local identity.

    The value is escaped per RFC 4515 so that '*', '(' or ')' in a
    user name cannot widen the search.
    """
    return "(&(objectClass={0})({1}={2}))".format(
        USER_OBJECT_CLASS,
        USER_ID_ATTRIBUTE,
        escape_filter_chars(local_part),
    )


# =============================================================================
# DIRECTORY STATE MACHINE
# =============================================================================


@attrs.define
class DirectoryStateMachine(
    StateMachineBase[DirectoryState, Any, DirectoryContext]
):
    """
    State machine for one directory authentication run.

    States:
    - INITIAL: Nothing done yet
    - CONNECTED: Connection open, not bound
    - SERVICE_BOUND: Bound as the service account
    - USER_LOCATED: Exactly one user entry found
    - VERIFIED: Rebind as the user accepted
    - FAILED: A step failed
    """

    def initial_state(self) -> DirectoryState:
        return DirectoryState.INITIAL

    def transition_table(
        self,
    ) -> Dict[Tuple[DirectoryState, type], TransitionEntry]:
        table: Dict[Tuple[DirectoryState, type], TransitionEntry] = {
            (DirectoryState.INITIAL, ConnectionOpened): (
                DirectoryState.CONNECTED,
                self._handle_connected,
            ),
            (DirectoryState.CONNECTED, ServiceAccountBound): (
                DirectoryState.SERVICE_BOUND,
                self._handle_service_bound,
            ),
            (DirectoryState.SERVICE_BOUND, UserLocated): (
                DirectoryState.USER_LOCATED,
                self._handle_user_located,
            ),
            (DirectoryState.USER_LOCATED, PasswordVerified): (
                DirectoryState.VERIFIED,
                self._handle_verified,
            ),
        }
        for state in (
            DirectoryState.INITIAL,
            DirectoryState.CONNECTED,
            DirectoryState.SERVICE_BOUND,
            DirectoryState.USER_LOCATED,
        ):
            table[(state, StepFailed)] = (DirectoryState.FAILED, self._handle_failed)
        return table

    @staticmethod
    def _handle_connected(
        event: ConnectionOpened, ctx: DirectoryContext
    ) -> DirectoryContext:
        return attrs.evolve(ctx, address=event.address, user=event.user)

    @staticmethod
    def _handle_service_bound(
        event: ServiceAccountBound, ctx: DirectoryContext
    ) -> DirectoryContext:
        return attrs.evolve(ctx, bind_dn=event.bind_dn)

    @staticmethod
    def _handle_user_located(
        event: UserLocated, ctx: DirectoryContext
    ) -> DirectoryContext:
        return attrs.evolve(ctx, user_dn=event.user_dn, match_count=1)

    @staticmethod
    def _handle_verified(
        event: PasswordVerified, ctx: DirectoryContext
    ) -> DirectoryContext:
        return ctx

    def _handle_failed(
        self, event: StepFailed, ctx: DirectoryContext
    ) -> DirectoryContext:
        return attrs.evolve(
            ctx,
            failed_in=self.state.name,
            failure_reason=event.reason,
            match_count=event.match_count if event.match_count is not None else ctx.match_count,
        )


def _verified_requires_user_dn(state: DirectoryState, ctx: DirectoryContext) -> bool:
    """Invariant: a verified run has located exactly one user entry."""
    if state in (DirectoryState.USER_LOCATED, DirectoryState.VERIFIED):
        return ctx.user_dn is not None and ctx.match_count == 1
    return True


# =============================================================================
# DIRECTORY AUTHENTICATOR
# =============================================================================


@attrs.define
class DirectoryAuthenticator:
    """
    Authenticates AuthAttempts against a directory.

    Holds no per-attempt state: every call builds its own state machine
    and opens its own connection, so one instance may serve concurrent
    requests and repeated calls with the same attempt give the same
    outcome.

    Example:
        authenticator = DirectoryAuthenticator(directory=Ldap3Directory())
        outcome = authenticator.authenticate(attempt)
        if outcome.success:
            ...
    """

    directory: Directory

    _logger: Any = attrs.Factory(lambda: structlog.get_logger())

    def authenticate(self, attempt: AuthAttempt) -> DirectoryOutcome:
        """
        Run connect/bind, search and rebind for one attempt.

        The connection is closed on every return path.

        Returns:
            DirectoryOutcome: authenticated, rejected or connection failure
        """
        outcome, _ = self.run(attempt)
        return outcome

    def run(
        self, attempt: AuthAttempt
    ) -> Tuple[DirectoryOutcome, DirectoryStateMachine]:
        """
        Like authenticate, but also return the finished state machine.

        The machine's trace shows which steps ran and where the run
        stopped.
        """
        machine = self.new_state_machine()
        log = self._logger.bind(
            user=attempt.user.local_part,
            domain=attempt.user.domain,
            address=attempt.directory_address,
        )

        try:
            conn = self.directory.connect(attempt.directory_address)
        except ConnectError as e:
            return self._fail(machine, log, FailureReason.CONNECT, detail=e.message), machine

        try:
            self._advance(
                machine,
                ConnectionOpened(
                    address=attempt.directory_address,
                    user=attempt.user.local_part,
                ),
            )
            return self._run_steps(machine, log, conn, attempt), machine
        finally:
            conn.close()

    def _run_steps(
        self,
        machine: DirectoryStateMachine,
        log: Any,
        conn: DirectoryConnection,
        attempt: AuthAttempt,
    ) -> DirectoryOutcome:
        try:
            conn.bind(attempt.bind_dn, attempt.bind_password)
        except BindError as e:
            return self._fail(machine, log, FailureReason.SERVICE_BIND, detail=e.message)
        self._advance(machine, ServiceAccountBound(bind_dn=attempt.bind_dn))

        search_filter = build_user_filter(attempt.user.local_part)
        try:
            matches: List[str] = conn.search(attempt.base_dn, search_filter)
        except SearchError as e:
            return self._fail(machine, log, FailureReason.SEARCH, detail=e.message)

        if len(matches) != 1:
            return self._fail(
                machine,
                log,
                FailureReason.USER_NOT_FOUND,
                match_count=len(matches),
            )
        user_dn = matches[0]
        self._advance(machine, UserLocated(user_dn=user_dn))

        try:
            conn.bind(user_dn, attempt.password)
        except BindError as e:
            return self._fail(machine, log, FailureReason.BAD_CREDENTIALS, detail=e.message)
        self._advance(machine, PasswordVerified(user_dn=user_dn))

        log.info("directory_auth_verified", user_dn=user_dn)
        return DirectoryOutcome.authenticated()

    def _fail(
        self,
        machine: DirectoryStateMachine,
        log: Any,
        reason: FailureReason,
        detail: str = "",
        match_count: Optional[int] = None,
    ) -> DirectoryOutcome:
        self._advance(machine, StepFailed(reason=reason, match_count=match_count, detail=detail))
        log.warning(
            "directory_auth_failed",
            reason=reason.value,
            failed_in=machine.context.failed_in,
            match_count=match_count,
            detail=detail,
        )
        if reason in TRANSIENT_REASONS:
            return DirectoryOutcome.connection_failed(reason)
        return DirectoryOutcome.rejected(reason)

    def _advance(self, machine: DirectoryStateMachine, event: Any) -> None:
        result = machine.process_event(event)
        if isinstance(result, Failure):
            raise StateError(result.failure())

    def new_state_machine(self) -> DirectoryStateMachine:
        """Create a fresh state machine with invariants registered."""
        machine = DirectoryStateMachine(_context=DirectoryContext())
        machine.add_invariant("verified_requires_user_dn", _verified_requires_user_dn)
        return machine


def create_authenticator(directory: Directory) -> DirectoryAuthenticator:
    """Create an authenticator over the given directory capability."""
    return DirectoryAuthenticator(directory=directory)
