"""The run loop: drives an agent through model turns, tools and handoffs.

A run moves through input guardrails, transcript seeding, then repeated turns
(stream a model response, assemble it, dispatch tool calls and handoffs) until
the model answers without tool calls, at which point output guardrails run and
the run completes. Every run is bounded by ``max_turns`` and observes
cooperative cancellation at every state transition: the top of each turn, the
end of each model stream, before each tool call or handoff, and before
completion.

Run-fatal errors never escape the event stream: they are delivered as the
terminal ``RunFailed`` event. ``Runner.run`` re-raises them.
"""

from collections.abc import AsyncGenerator, AsyncIterator, Mapping
from contextlib import aclosing
from dataclasses import replace
from time import monotonic
from typing import TYPE_CHECKING, Any, Self

from agent_runtime.agent.agent import Agent
from agent_runtime.agent.assembler import TurnAssembler
from agent_runtime.agent.config import RunConfig
from agent_runtime.agent.context import RunContext
from agent_runtime.agent.errors import (
    AgentError,
    InputBlockedError,
    InvalidConfigurationError,
    MaxTurnsExceededError,
    OutputBlockedError,
    ProviderError,
    RunCancelledError,
)
from agent_runtime.agent.events import (
    AgentEvent,
    AgentStarted,
    GuardrailTriggered,
    HandedOff,
    RunCompleted,
    RunFailed,
    ToolCallCompleted,
    ToolCallStarted,
    TurnCompleted,
)
from agent_runtime.agent.guardrails import GuardrailBlocked, evaluate_guardrails
from agent_runtime.agent.handoffs import HandoffTracker, find_handoff, parse_handoff_reason
from agent_runtime.agent.llm import FinishReason, LLMRequest
from agent_runtime.agent.messages import Message, RunResult, TokenUsage
from agent_runtime.agent.metrics import RunMetricsLabels, record_run, record_turn
from agent_runtime.agent.protocol import LLMProvider
from agent_runtime.agent.registry import RunHandle, RunRegistry
from agent_runtime.agent.tools import dispatch_tool
from agent_runtime.observability.logging import get_logger

if TYPE_CHECKING:
    from agent_runtime.settings import Settings

logger = get_logger(__name__)


class RunStream:
    """Async iterator over the events of one run, with its cancellation handle."""

    def __init__(self, events: AsyncGenerator[AgentEvent, None], handle: RunHandle) -> None:
        self._events = events
        self._handle = handle

    def __aiter__(self) -> AsyncIterator[AgentEvent]:
        return self

    async def __anext__(self) -> AgentEvent:
        return await self._events.__anext__()

    @property
    def run_id(self) -> str:
        return self._handle.run_id

    @property
    def handle(self) -> RunHandle:
        return self._handle

    def cancel(self) -> None:
        """Request cooperative cancellation; observed at the next state transition."""
        self._handle.cancel()

    async def aclose(self) -> None:
        """Stop consuming the run. The run is unregistered and no further events are produced."""
        await self._events.aclose()


class Runner:
    """Executes agents against a model backend.

    The runner holds no per-run state; many runs may share one instance
    concurrently.

    Args:
        provider: Model backend adapter
        max_turns: Turn bound per run, overrides ``config.max_turns`` when given
        config: Request parameters and default turn bound
        registry: Registry of in-flight runs (a private one is created when None)
    """

    def __init__(
        self,
        provider: LLMProvider,
        max_turns: int | None = None,
        config: RunConfig | None = None,
        registry: RunRegistry | None = None,
    ) -> None:
        config = config or RunConfig()
        if max_turns is not None:
            config = replace(config, max_turns=max_turns)
        if config.max_turns < 1:
            raise InvalidConfigurationError(f"max_turns must be at least 1, got {config.max_turns}")
        self._provider = provider
        self._config = config
        self._registry = registry if registry is not None else RunRegistry()

    @classmethod
    def from_settings(cls, settings: "Settings", provider: LLMProvider | None = None) -> Self:
        """Create a runner from application settings.

        A LiteLLM-backed provider is built from ``settings.llm`` when no
        provider is given.
        """
        if provider is None:
            from agent_runtime.agent.llm_client import LiteLLMProvider

            provider = LiteLLMProvider(settings.llm_config())
        return cls(provider, config=settings.run_config())

    @property
    def provider(self) -> LLMProvider:
        return self._provider

    @property
    def max_turns(self) -> int:
        return self._config.max_turns

    @property
    def registry(self) -> RunRegistry:
        return self._registry

    @property
    def active_runs(self) -> list[str]:
        return self._registry.active_run_ids

    def cancel(self, run_id: str) -> bool:
        """Cancel one in-flight run by id."""
        return self._registry.cancel(run_id)

    def cancel_all(self) -> int:
        """Cancel every in-flight run, e.g. on shutdown.

        Returns:
            Number of runs cancelled
        """
        return self._registry.cancel_all()

    def stream(
        self,
        agent: Agent,
        input: str,
        context: Mapping[str, Any] | None = None,
        *,
        run_id: str | None = None,
    ) -> RunStream:
        """Start a run and return its event stream.

        The run begins (and registers itself) when the stream is first
        iterated. The last event is always ``RunCompleted`` or ``RunFailed``.

        Args:
            agent: Starting agent
            input: User input
            context: Read-only values passed to tools and guardrails
            run_id: Optional run id, generated when None

        Returns:
            RunStream yielding AgentEvents
        """
        run_context = context if isinstance(context, RunContext) else RunContext(context)
        handle = RunHandle(run_id)
        return RunStream(self._execute(agent, input, run_context, handle), handle)

    async def run(
        self,
        agent: Agent,
        input: str,
        context: Mapping[str, Any] | None = None,
        *,
        run_id: str | None = None,
    ) -> RunResult:
        """Execute a run to completion.

        Returns:
            RunResult of the completed run

        Raises:
            AgentError: The run-fatal error (or any unexpected exception) that ended the run
        """
        async with aclosing(self.stream(agent, input, context, run_id=run_id)) as events:
            async for event in events:
                match event:
                    case RunCompleted(result=result):
                        return result
                    case RunFailed(error=error):
                        raise error
        raise AgentError("Run ended without a terminal event")

    async def _execute(
        self,
        agent: Agent,
        input: str,
        context: RunContext,
        handle: RunHandle,
    ) -> AsyncGenerator[AgentEvent, None]:
        log = logger.bind(run_id=handle.run_id, agent=agent.name)
        start_time = monotonic()
        outcome = "aborted"
        log.debug("Run started", max_turns=self.max_turns)
        try:
            self._registry.register(handle)
            async with aclosing(self._run_loop(agent, input, context, handle)) as events:
                async for event in events:
                    yield event
            outcome = "completed"
        except RunCancelledError as e:
            outcome = "cancelled"
            log.warning("Run cancelled")
            yield RunFailed(e)
        except AgentError as e:
            outcome = "failed"
            log.warning("Run failed", error=str(e), error_type=type(e).__name__)
            yield RunFailed(e)
        except Exception as e:
            outcome = "failed"
            log.exception("Run failed with unexpected error")
            yield RunFailed(e)
        finally:
            self._registry.unregister(handle.run_id, handle)
            record_run(RunMetricsLabels(agent.name, outcome), monotonic() - start_time)
            log.debug("Run finished", outcome=outcome)

    def _build_request(self, agent: Agent, transcript: list[Message]) -> LLMRequest:
        config = self._config
        return LLMRequest(
            model=agent.model or self._provider.default_model,
            messages=list(transcript),
            tools=agent.tool_definitions() or None,
            max_tokens=config.max_tokens,
            temperature=config.temperature,
            top_p=config.top_p,
            stop_sequences=list(config.stop_sequences) if config.stop_sequences else None,
        )

    async def _run_loop(
        self,
        agent: Agent,
        input: str,
        context: RunContext,
        handle: RunHandle,
    ) -> AsyncGenerator[AgentEvent, None]:
        log = logger.bind(run_id=handle.run_id)

        processed_input = input
        async with aclosing(evaluate_guardrails(input, agent.input_guardrails, context)) as outcomes:
            async for guardrail, result, processed_input in outcomes:
                yield GuardrailTriggered(guardrail.name, result)
                if isinstance(result, GuardrailBlocked):
                    raise InputBlockedError(guardrail.name, result.reason)
        handle.raise_if_cancelled()

        active = agent
        transcript = [Message.system(active.instructions), Message.user(processed_input)]
        tracker = HandoffTracker(active.name)
        usage: TokenUsage | None = None
        tool_call_count = 0
        turn = 0
        yield AgentStarted(active.name)

        while turn < self.max_turns:
            handle.raise_if_cancelled()
            turn += 1
            record_turn(active.name)

            assembler = TurnAssembler()
            request = self._build_request(active, transcript)
            async with aclosing(self._provider.stream(request)) as stream_events:
                async for stream_event in stream_events:
                    delta = assembler.feed(stream_event)
                    if delta is not None:
                        yield delta
            handle.raise_if_cancelled()
            assembled = assembler.finish()

            if assembled.finish_reason is FinishReason.ERROR:
                raise ProviderError(assembled.error or "Model stopped with an error")
            if assembled.usage is not None:
                usage = assembled.usage if usage is None else usage + assembled.usage

            transcript.append(Message.assistant(assembled.text or "", assembled.tool_calls))
            yield TurnCompleted(turn)

            if not assembled.tool_calls:
                output = assembled.text or ""
                async with aclosing(
                    evaluate_guardrails(output, active.output_guardrails, context)
                ) as outcomes:
                    async for guardrail, result, output in outcomes:
                        yield GuardrailTriggered(guardrail.name, result)
                        if isinstance(result, GuardrailBlocked):
                            raise OutputBlockedError(guardrail.name, result.reason)

                handle.raise_if_cancelled()
                log.info("Run completed", agent=active.name, turns=turn, tool_calls=tool_call_count)
                yield RunCompleted(
                    RunResult(
                        output=output,
                        messages=list(transcript),
                        final_agent=active.name,
                        tool_call_count=tool_call_count,
                        turn_count=turn,
                        token_usage=usage,
                    )
                )
                return

            for call in assembled.tool_calls:
                # The agent switch below is applied whole or not at all
                handle.raise_if_cancelled()
                tool_call_count += 1
                handoff = find_handoff(active, call.name)
                if handoff is not None:
                    target = handoff.target
                    tracker.visit(target.name)
                    reason = parse_handoff_reason(call.arguments)
                    transcript.append(
                        Message.tool(call.id, f"Handed off to {target.name}", name=call.name)
                    )
                    previous, active = active, target
                    transcript[0] = Message.system(active.instructions)
                    log.info("Handoff", from_agent=previous.name, to_agent=active.name, reason=reason)
                    yield HandedOff(previous.name, active.name, reason)
                    yield AgentStarted(active.name)
                    continue

                yield ToolCallStarted(call.id, call.name, call.arguments)
                tool_result = await dispatch_tool(call, active.tools, context, agent_name=active.name)
                transcript.append(Message.tool(call.id, tool_result.message_content, name=call.name))
                yield ToolCallCompleted(call.id, call.name, tool_result.content, tool_result.is_error)

        log.warning("Maximum turns reached", agent=active.name, max_turns=self.max_turns)
        raise MaxTurnsExceededError(self.max_turns)
