"""
concierge.orchestration.dispatcher - Dispatch Loop
====================================================

The control core of a turn. It decides how the utterance is routed, runs
agents one after another, and finishes with either a committed booking or
a consolidated reply.

State Machine (one instance per turn):

    RECEIVED ─┬─> RESUMING ─────┐
              ├─> DIRECT_REPLY ─┼─> EXECUTING ─┬─> EXECUTING (next plan step)
              └─> PLANNING ─────┘              ├─> HANDOFF ─┬─> EXECUTING
                                               │            └─> CONSOLIDATING
                                               ├─> COMMITTING ─┬─> COMPLETED
                                               │               └─> CONSOLIDATING
                                               └─> CONSOLIDATING ─> COMPLETED

Routing (first match wins):
    1. interrupted flow + resume request  → RESUMING (snapshot agent)
    2. booking in progress + topic switch → snapshot, reset, continue below
    3. an agent awaits a direct reply     → DIRECT_REPLY (that agent)
    4. otherwise                          → PLANNING (planner decomposition)

Bound:
    At most ``max_delegation_steps`` agent executions per turn (plan steps
    and hand-offs together). Remaining steps are skipped and logged.

Short-circuit:
    A complete ReservationPayload stops the loop. A successful commit
    returns a redirect response straight away; a failed commit attaches
    ``insert_error`` and continues to consolidation.
"""

from __future__ import annotations

from collections import deque
from datetime import datetime, timezone
from typing import Any, Optional

import structlog
from pydantic import BaseModel, ConfigDict

from concierge.core.config import OrchestratorConfig
from concierge.core.enums import AgentName, DispatchPhase, PlanSource, ResponseType, ToolName
from concierge.core.exceptions import DispatchError
from concierge.core.models import (
    AgentResult,
    CommitReceipt,
    DelegationStep,
    ExecutionPlan,
    HistoryTurn,
    TurnResponse,
)
from concierge.core.state import ConversationState
from concierge.core.tools import ReservationPayload, ToolFailure, ToolSuccess, reservation_payload
from concierge.orchestration.committer import ReservationCommitter, booking_key
from concierge.orchestration.consolidator import Consolidator
from concierge.orchestration.execution_adapter import AgentExecutionAdapter
from concierge.orchestration.handoff_resolver import HandoffAction, HandoffResolver
from concierge.orchestration.interrupt_manager import RESUME_SUBTASK, InterruptManager
from concierge.orchestration.planner import Planner
from concierge.orchestration.session_store import SessionStore


logger = structlog.get_logger()

RESERVATION_CREATED_MESSAGE = "Your reservation has been successfully created!"


# =============================================================================
# State Machine
# =============================================================================
TRANSITIONS: dict[DispatchPhase, frozenset[DispatchPhase]] = {
    DispatchPhase.RECEIVED: frozenset({
        DispatchPhase.RESUMING,
        DispatchPhase.DIRECT_REPLY,
        DispatchPhase.PLANNING,
    }),
    DispatchPhase.RESUMING: frozenset({DispatchPhase.EXECUTING}),
    DispatchPhase.DIRECT_REPLY: frozenset({DispatchPhase.EXECUTING}),
    DispatchPhase.PLANNING: frozenset({DispatchPhase.EXECUTING}),
    DispatchPhase.EXECUTING: frozenset({
        DispatchPhase.EXECUTING,
        DispatchPhase.HANDOFF,
        DispatchPhase.COMMITTING,
        DispatchPhase.CONSOLIDATING,
    }),
    DispatchPhase.HANDOFF: frozenset({DispatchPhase.EXECUTING, DispatchPhase.CONSOLIDATING}),
    DispatchPhase.COMMITTING: frozenset({DispatchPhase.COMPLETED, DispatchPhase.CONSOLIDATING}),
    DispatchPhase.CONSOLIDATING: frozenset({DispatchPhase.COMPLETED}),
    DispatchPhase.COMPLETED: frozenset(),
}


class DispatchStateMachine:
    """Tracks the phase of one turn and rejects illegal transitions.

    Example:
        >>> machine = DispatchStateMachine()
        >>> machine.advance(DispatchPhase.PLANNING)
        >>> machine.advance(DispatchPhase.COMPLETED)
        Traceback (most recent call last):
        DispatchError: Illegal dispatch transition: planning -> completed
    """

    def __init__(self) -> None:
        self._phase = DispatchPhase.RECEIVED
        self._trail: list[DispatchPhase] = [DispatchPhase.RECEIVED]

    @property
    def phase(self) -> DispatchPhase:
        return self._phase

    @property
    def trail(self) -> list[DispatchPhase]:
        return list(self._trail)

    @property
    def is_terminal(self) -> bool:
        return self._phase == DispatchPhase.COMPLETED

    def advance(self, to: DispatchPhase) -> None:
        if to not in TRANSITIONS[self._phase]:
            raise DispatchError(
                f"Illegal dispatch transition: {self._phase.value} -> {to.value}",
                from_phase=self._phase.value,
                to_phase=to.value,
            )
        self._phase = to
        self._trail.append(to)


class _Pending(BaseModel):
    model_config = ConfigDict(frozen=True)

    agent: AgentName
    subtask: str
    via_handoff: bool = False


# =============================================================================
# Dispatcher
# =============================================================================
class Dispatcher:
    """Runs one conversational turn against a session's ConversationState.

    Holds no per-session data: the plan and phase trail of a turn travel on
    the TurnResponse it returns.
    """

    def __init__(
        self,
        session_store: SessionStore,
        planner: Planner,
        adapter: AgentExecutionAdapter,
        handoff_resolver: HandoffResolver,
        interrupt_manager: InterruptManager,
        consolidator: Consolidator,
        committer: ReservationCommitter,
        config: OrchestratorConfig,
    ) -> None:
        self._store = session_store
        self._planner = planner
        self._adapter = adapter
        self._resolver = handoff_resolver
        self._interrupts = interrupt_manager
        self._consolidator = consolidator
        self._committer = committer
        self._config = config
        self._logger = logger.bind(component="dispatcher")

    async def dispatch(
        self,
        utterance: str,
        history: list[HistoryTurn],
        venue_id: int,
        state: ConversationState,
    ) -> TurnResponse:
        """Process one utterance for the session owning ``state``."""
        machine = DispatchStateMachine()
        state.delegation_chain = []
        state.turn_count += 1

        plan = await self._route(machine, utterance, history, venue_id, state)
        self._logger.info(
            "turn_routed",
            session_id=state.session_id,
            phase=machine.phase.value,
            source=plan.source.value,
            agents=[a.value for a in plan.agents],
        )

        reservation_step = await self._execute_plan(machine, plan, history, venue_id, state)

        insert_error: Optional[str] = None
        if reservation_step is not None:
            machine.advance(DispatchPhase.COMMITTING)
            payload = reservation_payload(reservation_step.result)
            if payload.idempotency_key is None:
                payload = payload.model_copy(
                    update={"idempotency_key": booking_key(state.session_id, venue_id, payload)}
                )
            outcome = await self._committer.commit(payload, venue_id)
            if outcome.ok:
                response = self._redirect(payload, outcome.receipt, reservation_step, state)
                machine.advance(DispatchPhase.COMPLETED)
                return await self._finish(machine, plan, state, response)
            insert_error = outcome.error
            self._replace_result(
                state,
                reservation_step,
                ToolFailure(
                    tool=ToolName.CREATE_RESERVATION.value,
                    error=f"The reservation could not be saved: {outcome.error}",
                    error_code="PERSISTENCE_ERROR",
                ),
            )

        machine.advance(DispatchPhase.CONSOLIDATING)
        consolidation = await self._consolidator.consolidate(
            utterance,
            state.delegation_chain,
            history,
            current_context=self._current_context(state),
        )
        machine.advance(DispatchPhase.COMPLETED)

        response = TurnResponse(
            response=consolidation.text,
            type=ResponseType.MESSAGE,
            insert_error=insert_error,
            orchestrator=self._metadata(state, is_consolidated=consolidation.is_consolidated),
        )
        return await self._finish(machine, plan, state, response)

    # =========================================================================
    # Routing
    # =========================================================================

    async def _route(
        self,
        machine: DispatchStateMachine,
        utterance: str,
        history: list[HistoryTurn],
        venue_id: int,
        state: ConversationState,
    ) -> ExecutionPlan:
        if await self._interrupts.should_resume(state, utterance):
            machine.advance(DispatchPhase.RESUMING)
            snapshot = self._interrupts.resume(state)
            return ExecutionPlan.single(snapshot.agent, RESUME_SUBTASK, PlanSource.RESUME)

        if await self._interrupts.should_interrupt(state, utterance):
            self._interrupts.interrupt(state, utterance)

        if state.is_awaiting_user_response and state.next_agent is not None:
            machine.advance(DispatchPhase.DIRECT_REPLY)
            agent = state.next_agent
            state.clear_awaiting()
            await self._store.save(state)
            return ExecutionPlan.single(agent, utterance, PlanSource.DIRECT_REPLY)

        machine.advance(DispatchPhase.PLANNING)
        return await self._planner.get_plan(utterance, history, venue_id)

    # =========================================================================
    # Execution
    # =========================================================================

    async def _execute_plan(
        self,
        machine: DispatchStateMachine,
        plan: ExecutionPlan,
        history: list[HistoryTurn],
        venue_id: int,
        state: ConversationState,
    ) -> Optional[DelegationStep]:
        """Run plan steps and hand-offs up to the bound.

        Returns:
            The step that produced a complete booking, if any.
        """
        pending: deque[_Pending] = deque(
            _Pending(agent=step.agent_to_use, subtask=step.sub_task_query)
            for step in plan.steps
        )
        bound = self._config.max_delegation_steps

        while pending:
            if len(state.delegation_chain) >= bound:
                self._logger.warning(
                    "plan_steps_skipped",
                    bound=bound,
                    skipped=[p.agent.value for p in pending],
                )
                break

            item = pending.popleft()
            machine.advance(DispatchPhase.EXECUTING)
            result = await self._adapter.execute(
                item.agent,
                item.subtask,
                history,
                venue_id,
                state.global_context,
                state,
            )
            step = DelegationStep(
                agent=result.agent,
                subtask=item.subtask,
                result=result.tool_result,
                step_index=len(state.delegation_chain),
                via_handoff=item.via_handoff,
            )
            self._apply_result(state, step, result)

            if reservation_payload(result.tool_result) is not None:
                if pending:
                    self._logger.info(
                        "plan_short_circuited",
                        skipped=[p.agent.value for p in pending],
                    )
                return step

            decision = self._resolver.resolve(
                result,
                steps_taken=len(state.delegation_chain),
                scheduled=[p.agent for p in pending],
                executed=self._executed_agents(state),
            )
            if decision.action == HandoffAction.NONE:
                continue
            machine.advance(DispatchPhase.HANDOFF)
            if decision.advances:
                pending.appendleft(
                    _Pending(agent=decision.agent, subtask=decision.subtask, via_handoff=True)
                )

        return None

    def _apply_result(self, state: ConversationState, step: DelegationStep, result: AgentResult) -> None:
        state.record_step(step)

        agent = AgentName.parse(result.agent)
        if agent is not None:
            state.active_agent = agent
        if result.awaiting_reply is not None:
            state.await_reply(result.awaiting_reply)
            state.active_agent = result.awaiting_reply.next_agent

        self._logger.info(
            "step_executed",
            session_id=state.session_id,
            step_index=step.step_index,
            agent=result.agent,
            tool=result.tool_name,
            complete=result.is_task_complete,
            awaiting_reply=result.awaiting_reply is not None,
            error=result.error,
        )

    @staticmethod
    def _executed_agents(state: ConversationState) -> list[AgentName]:
        agents = (AgentName.parse(step.agent) for step in state.delegation_chain)
        return [agent for agent in agents if agent is not None]

    @staticmethod
    def _replace_result(
        state: ConversationState,
        step: DelegationStep,
        result: Any,
    ) -> None:
        updated = step.model_copy(update={"result": result})
        state.delegation_chain[step.step_index] = updated
        agent = AgentName.parse(step.agent)
        if agent is not None:
            state.global_context[agent] = result

    # =========================================================================
    # Responses
    # =========================================================================

    def _redirect(
        self,
        payload: ReservationPayload,
        receipt: CommitReceipt,
        step: DelegationStep,
        state: ConversationState,
    ) -> TurnResponse:
        stored = payload.model_copy(
            update={"reservation_id": receipt.reservation_id, "created_at": receipt.created_at}
        )
        self._replace_result(
            state, step, ToolSuccess(tool=ToolName.CREATE_RESERVATION, payload=stored)
        )

        state.flow_state = {}
        state.active_flow = None
        state.clear_awaiting()

        reservation: dict[str, Any] = {
            "date": payload.date,
            "time": payload.time,
            "partySize": payload.party_size,
            "tableType": payload.table_type,
        }
        if payload.special_requests:
            reservation["specialRequests"] = payload.special_requests

        return TurnResponse(
            response=RESERVATION_CREATED_MESSAGE,
            type=ResponseType.REDIRECT,
            reservation_details={
                "success": True,
                "reservationId": receipt.reservation_id,
                "restaurant": {"name": self._config.restaurant_name},
                "customer": {"name": payload.name, "email": payload.email, "phone": payload.phone},
                "reservation": reservation,
            },
            orchestrator=self._metadata(state, is_consolidated=False),
        )

    def _metadata(self, state: ConversationState, is_consolidated: bool) -> dict[str, Any]:
        chain = state.delegation_chain
        return {
            "architecture": self._config.architecture_label,
            "sessionId": state.session_id,
            "delegationChain": [step.to_wire() for step in chain],
            "totalAgentsInvolved": len(chain),
            "finalAgent": chain[-1].agent if chain else None,
            "globalContext": {
                agent.value: result.model_dump(mode="json", by_alias=True)
                for agent, result in state.global_context.items()
            },
            "isConsolidated": is_consolidated,
            "toolResultsCount": sum(1 for step in chain if step.result is not None),
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    @staticmethod
    def _current_context(state: ConversationState) -> dict[str, Any]:
        summary = state.summary()
        return {
            key: summary[key]
            for key in ("activeAgent", "activeFlow", "flowState", "isAwaitingUserResponse", "nextAgent")
        }

    async def _finish(
        self,
        machine: DispatchStateMachine,
        plan: ExecutionPlan,
        state: ConversationState,
        response: TurnResponse,
    ) -> TurnResponse:
        await self._store.save(state)
        self._logger.info(
            "turn_completed",
            session_id=state.session_id,
            type=response.type.value,
            steps=len(state.delegation_chain),
            trail=[phase.value for phase in machine.trail],
        )
        return response.model_copy(update={"plan": plan, "trail": machine.trail})
