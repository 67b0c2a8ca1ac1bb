# =============================================================================
# agents/orchestrator.py - Conversational Function-Calling Orchestrator
# =============================================================================
# ChatSession runs one conversation:
#
#   uninitialized --prime()--> primed --activate()--> active --clear()--> cleared
#
# One user turn (send_message):
#   1. Add the user text plus a data-availability note to history
#   2. Call the model; an empty channel is retried (fixed delay), then
#      ModelUnavailableError. Client exceptions become ModelServiceError.
#   3. Function calls: run each through the FunctionRegistry (unknown names
#      and handler errors come back as error-shaped responses) and send all
#      responses back in one follow-up turn
#   4. Follow-up: retried with exponential backoff while it is empty; new
#      function calls start another round, up to MAX_FUNCTION_ROUNDS
#   5. Empty final text is replaced by a fallback, never returned blank
#   6. Truncation policy may append a continuation hint
#
# Turns on one session are serialized by an asyncio.Lock. ChatOrchestrator
# wires sessions to services and keeps them in the SessionRegistry.
# =============================================================================

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Mapping, Sequence

from agents.functions import FunctionContext, FunctionDeclaration, FunctionRegistry, declarations_for_workspace
from agents.model_client import ModelClient, ModelResponse
from agents.response_policy import (
    EMPTY_RESPONSE_FALLBACK,
    apply_truncation_policy,
    followup_fallback,
)
from agents.session_registry import SessionRegistry, new_session_key
from app.config import settings
from core.models.chat import ChatReply
from core.models.session import SessionResponse, SessionState
from core.search import (
    InvoiceSearchService,
    PriceListSearchService,
    PurchaseOrderSearchService,
    SearchError,
    SearchService,
)
from core.services.order_service import OrderService
from core.services.prompt_service import MissingPrimeError, PrimeContext, PromptService
from core.services.record_store import RecordStore
from core.services.storage_service import ArtifactStore
from lib.memory import ConversationHistory
from lib.retry import exponential_delay, fixed_delay, retry_async
from lib.utils import ApplicationError, mask_identifier

logger = logging.getLogger(__name__)

AvailabilityProvider = Callable[[], Awaitable[Mapping[str, Any]]]


# =============================================================================
# Errors
# =============================================================================

class SessionClearedError(ApplicationError):
    """Raised on any use of a cleared session."""

    status_code = 410

    def __init__(self, session_key: str):
        super().__init__(
            message=f"Session has been cleared: {session_key}",
            code="SESSION_CLEARED",
            suggestion="Start a new session or reset this one",
            details={"session_key": session_key},
        )


class SessionStateError(ApplicationError):
    """Raised when an operation does not fit the session's current state."""

    status_code = 409

    def __init__(self, message: str, state: SessionState):
        super().__init__(message, code="INVALID_SESSION_STATE", details={"state": state.value})


class ModelUnavailableError(ApplicationError):
    """The model kept answering with nothing."""

    status_code = 503

    def __init__(self, attempts: int):
        super().__init__(
            message=f"The language model did not respond after {attempts} attempts",
            code="MODEL_UNAVAILABLE",
            suggestion="Try again in a moment",
            details={"attempts": attempts},
        )


class ModelServiceError(ApplicationError):
    """The model client raised."""

    status_code = 502

    def __init__(self, error: Exception):
        super().__init__(
            message=f"Language model request failed: {error}",
            code="MODEL_SERVICE_ERROR",
            suggestion="Check OPENAI_API_KEY and OPENAI_MODEL, then try again",
            details={"error_type": type(error).__name__},
        )


# =============================================================================
# Turn Limits
# =============================================================================

@dataclass(frozen=True)
class TurnLimits:
    """Retry and round limits for one turn."""

    primary_max_attempts: int = 3
    primary_retry_delay: float = 1.0
    followup_max_retries: int = 3
    followup_base_delay: float = 1.0
    max_function_rounds: int = 5

    @classmethod
    def from_settings(cls) -> "TurnLimits":
        return cls(
            primary_max_attempts=settings.PRIMARY_MAX_ATTEMPTS,
            primary_retry_delay=settings.PRIMARY_RETRY_DELAY_SECONDS,
            followup_max_retries=settings.FOLLOWUP_MAX_RETRIES,
            followup_base_delay=settings.FOLLOWUP_BASE_DELAY_SECONDS,
            max_function_rounds=settings.MAX_FUNCTION_ROUNDS,
        )


def format_availability_note(availability: Mapping[str, Any]) -> str:
    """
    Machine-readable note on what data the owner has.

    Example:
        format_availability_note({"purchase_orders": 12, "price_list": 0})
        # "[data-availability] purchase_orders=12; price_list=0"
    """
    if not availability:
        return "[data-availability] none"
    pairs = "; ".join(f"{key}={value}" for key, value in availability.items())
    return f"[data-availability] {pairs}"


def _followup_acceptable(response: ModelResponse | None) -> bool:
    return response is not None and (response.has_text or bool(response.function_calls))


# =============================================================================
# Chat Session
# =============================================================================

class ChatSession:
    """
    One conversation with the model.

    Example:
        session = ChatSession("chat_1", model, registry, declarations)
        session.prime(instructions)
        session.activate()
        reply = await session.send_message("Orders from Huolto?")
    """

    def __init__(
        self,
        key: str,
        model: ModelClient,
        registry: FunctionRegistry,
        declarations: Sequence[FunctionDeclaration],
        *,
        owner_id: str = "",
        workspace: str = "purchaser",
        availability: AvailabilityProvider | None = None,
        limits: TurnLimits | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.key = key
        self.model = model
        self.registry = registry
        self.declarations = list(declarations)
        self.owner_id = owner_id
        self.workspace = workspace
        self.availability = availability
        self.limits = limits or TurnLimits()
        self.sleep = sleep

        self.state = SessionState.UNINITIALIZED
        self.instructions: str | None = None
        self.prime_context: PrimeContext | None = None
        self.history = ConversationHistory()
        self.created_at = datetime.now(timezone.utc)
        self._lock = asyncio.Lock()

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def _require_not_cleared(self) -> None:
        if self.state == SessionState.CLEARED:
            raise SessionClearedError(self.key)

    def prime(self, instructions: str | None, context: PrimeContext | None = None) -> None:
        """
        Supply system instructions.

        Raises:
            MissingPrimeError: If the instructions are empty or blank
            SessionClearedError: If the session was cleared
            SessionStateError: If the session is already primed
        """
        self._require_not_cleared()
        if self.state != SessionState.UNINITIALIZED:
            raise SessionStateError("Session is already primed", self.state)
        if not instructions or not instructions.strip():
            raise MissingPrimeError("Cannot prime a session with empty instructions")

        self.instructions = instructions
        self.prime_context = context
        self.state = SessionState.PRIMED
        logger.info(f"Session {self.key} primed ({len(instructions)} chars)")

    def activate(self) -> None:
        self._require_not_cleared()
        if self.state != SessionState.PRIMED:
            raise SessionStateError("Only a primed session can be activated", self.state)
        self.state = SessionState.ACTIVE

    def clear(self) -> None:
        """Close the session for good. A turn already running finishes normally."""
        if self.state != SessionState.CLEARED:
            logger.info(f"Session {self.key} cleared after {len(self.history)} turns")
        self.state = SessionState.CLEARED

    def _require_active(self) -> None:
        self._require_not_cleared()
        if self.state == SessionState.UNINITIALIZED:
            raise MissingPrimeError("Session has not been primed with instructions")
        if self.state != SessionState.ACTIVE:
            raise SessionStateError("Session is not active", self.state)

    def to_response(self) -> SessionResponse:
        prime = self.prime_context
        return SessionResponse(
            session_key=self.key,
            state=self.state,
            workspace=self.workspace,
            functions=[d.name for d in self.declarations],
            prompt_version=prime.prompt_version if prime else None,
            documents_used=prime.documents_used if prime else [],
            turn_count=len(self.history),
            created_at=self.created_at,
        )

    # -------------------------------------------------------------------------
    # Turns
    # -------------------------------------------------------------------------

    async def send_message(self, text: str) -> ChatReply:
        """
        Run one user turn and return the assistant's reply.

        Raises:
            MissingPrimeError: If the session was never primed
            SessionClearedError: If the session was cleared
            ModelUnavailableError: If the model keeps returning nothing
            ModelServiceError: If the model client fails
        """
        self._require_active()
        async with self._lock:
            self._require_active()
            checkpoint = len(self.history)
            try:
                return await self._run_turn(text)
            except BaseException:
                # Includes cancellation; a half-finished exchange must not stay in history
                self.history.rollback(checkpoint)
                raise

    async def _run_turn(self, text: str) -> ChatReply:
        note = await self._availability_note()
        self.history.add_user_text(f"{text}\n\n{note}" if note else text)

        response = await self._primary_call()

        function_log: list[str] = []
        followup_retries = 0
        fallback = False
        rounds = 0

        while response.function_calls:
            rounds += 1
            if rounds > self.limits.max_function_rounds:
                logger.warning(
                    f"Session {self.key}: stopping after {self.limits.max_function_rounds} function rounds"
                )
                break

            calls = response.function_calls
            self.history.add_model_turn(response.text, calls)
            responses = await self.registry.execute_all(calls)
            self.history.add_function_responses(responses)
            function_log.extend(call.describe() for call in calls)

            outcome = await retry_async(
                self._generate,
                max_attempts=self.limits.followup_max_retries + 1,
                delay=exponential_delay(self.limits.followup_base_delay),
                is_acceptable=_followup_acceptable,
                label=f"Follow-up for session {self.key}",
                sleep=self.sleep,
            )
            followup_retries += outcome.retries
            if not outcome.accepted:
                response = ModelResponse(text=followup_fallback(len(function_log)))
                fallback = True
                break
            response = outcome.value

        if response.function_calls:
            # Round limit hit with calls still requested; they are not run
            final_text = response.text if response.has_text else followup_fallback(len(function_log))
            fallback = not response.has_text
        elif response.has_text:
            final_text = response.text
        elif function_log:
            final_text = followup_fallback(len(function_log))
            fallback = True
        else:
            logger.warning(f"Session {self.key}: model returned an empty reply, using fallback")
            final_text = EMPTY_RESPONSE_FALLBACK
            fallback = True

        self.history.add_model_turn(final_text)
        policy = apply_truncation_policy(final_text)
        if policy.truncated:
            logger.info(f"Session {self.key}: reply looks truncated, continuation hint added")

        return ChatReply(
            text=policy.text,
            function_calls=function_log,
            followup_retries=followup_retries,
            truncated=policy.truncated,
            fallback=fallback,
        )

    async def _availability_note(self) -> str:
        if self.availability is None:
            return ""
        return format_availability_note(await self.availability())

    async def _generate(self) -> ModelResponse | None:
        try:
            return await self.model.generate(self.instructions or "", self.history, self.declarations)
        except ApplicationError:
            raise
        except Exception as e:
            logger.error(f"Session {self.key}: model call failed: {e}")
            raise ModelServiceError(e) from e

    async def _primary_call(self) -> ModelResponse:
        outcome = await retry_async(
            self._generate,
            max_attempts=self.limits.primary_max_attempts,
            delay=fixed_delay(self.limits.primary_retry_delay),
            label=f"Model call for session {self.key}",
            sleep=self.sleep,
        )
        if not outcome.accepted:
            raise ModelUnavailableError(outcome.attempts)
        return outcome.value


# =============================================================================
# Orchestrator
# =============================================================================

async def count_available_records(services: Mapping[str, SearchService], owner_id: str) -> dict[str, Any]:
    """Record counts per domain; "unavailable" when a store read fails."""
    counts: dict[str, Any] = {}
    for name, service in services.items():
        try:
            batches = await service.load_batches(owner_id)
            counts[name] = sum(len(batch) for batch in batches)
        except SearchError as e:
            logger.warning(f"Availability check failed for {name}: {e.message}")
            counts[name] = "unavailable"
    return counts


class ChatOrchestrator:
    """
    Creates, finds and retires chat sessions.

    Example:
        orchestrator = ChatOrchestrator(model, store, artifacts, prompts)
        session = await orchestrator.create_session("user-123", "purchaser")
        reply = await orchestrator.send_message(session.key, "Orders from Huolto?")
    """

    def __init__(
        self,
        model: ModelClient,
        store: RecordStore,
        artifacts: ArtifactStore,
        prompts: PromptService,
        registry: SessionRegistry | None = None,
        limits: TurnLimits | None = None,
        max_records: int | None = None,
    ):
        self.model = model
        self.prompts = prompts
        self.sessions = registry or SessionRegistry()
        self.limits = limits or TurnLimits.from_settings()
        self.max_records = max_records if max_records is not None else settings.MAX_RECORDS_TO_MODEL

        self.purchase_orders = PurchaseOrderSearchService(store)
        self.invoices = InvoiceSearchService(store)
        self.price_list = PriceListSearchService(store)
        self.orders = OrderService(store, artifacts)

    def _searches_for(self, workspace: str) -> dict[str, SearchService]:
        if workspace == "invoicer":
            return {"purchase_orders": self.purchase_orders, "invoices": self.invoices}
        return {"purchase_orders": self.purchase_orders, "price_list": self.price_list}

    async def create_session(self, owner_id: str, workspace: str = "purchaser") -> ChatSession:
        """
        Prime and register a new active session.

        Raises:
            MissingPrimeError: If the owner has no system prompt for the workspace
            PromptStoreError: If saved prompts cannot be read
        """
        session = await self._build_session(owner_id, workspace)
        self.sessions.add(session)
        logger.info(f"Created session {session.key} for {mask_identifier(owner_id)} in {workspace}")
        return session

    async def _build_session(self, owner_id: str, workspace: str) -> ChatSession:
        prime = await self.prompts.build_prime(owner_id, workspace)

        context = FunctionContext(
            owner_id=owner_id,
            purchase_orders=self.purchase_orders,
            invoices=self.invoices,
            price_list=self.price_list,
            orders=self.orders,
            max_records=self.max_records,
        )
        declarations = declarations_for_workspace(workspace)
        searches = self._searches_for(workspace)

        session = ChatSession(
            new_session_key(),
            self.model,
            FunctionRegistry(context, allowed=[d.name for d in declarations]),
            declarations,
            owner_id=owner_id,
            workspace=workspace,
            availability=lambda: count_available_records(searches, owner_id),
            limits=self.limits,
        )
        session.prime(prime.instructions, prime)
        session.activate()
        return session

    async def send_message(self, session_key: str, text: str) -> ChatReply:
        return await self.sessions.get(session_key).send_message(text)

    def clear_session(self, session_key: str) -> None:
        self.sessions.remove(session_key).clear()

    async def reset_session(self, session_key: str) -> ChatSession:
        """
        Replace a session with a fresh one for the same owner and workspace.

        The new session is primed first; if priming fails the old session
        stays registered and usable.
        """
        old = self.sessions.get(session_key)
        fresh = await self._build_session(old.owner_id, old.workspace)

        self.sessions.remove(session_key).clear()
        self.sessions.add(fresh)
        logger.info(f"Reset session {session_key} to {fresh.key}")
        return fresh
