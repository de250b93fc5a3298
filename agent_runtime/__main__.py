"""Entry point when the package is executed as a module.

Runs a single agent against a prompt, streaming the answer to stdout:

    python -m agent_runtime "What is 2 + 2?" --model anthropic/claude-sonnet-4-5
"""

import asyncio
import sys
from contextlib import aclosing

import click

from .agent import (
    Agent,
    HandedOff,
    RunCompleted,
    RunFailed,
    Runner,
    TextDelta,
    ToolCallCompleted,
    ToolCallStarted,
)
from .agent.mcp import MCPToolSource
from .observability import bind_run, configure_logging
from .settings import Settings


async def run_prompt(runner: Runner, agent: Agent, prompt: str) -> int:
    """Stream one run to the terminal and return the process exit code."""
    stream = runner.stream(agent, prompt)
    bind_run(stream.run_id)
    async with aclosing(stream):
        async for event in stream:
            match event:
                case TextDelta(text=text):
                    click.echo(text, nl=False)
                case ToolCallStarted(name=name, arguments=arguments):
                    click.echo(f"[tool] {name}({arguments})", err=True)
                case ToolCallCompleted(name=name, result=result, is_error=True):
                    click.echo(f"[tool] {name} failed: {result}", err=True)
                case HandedOff(from_agent=from_agent, to_agent=to_agent, reason=reason):
                    click.echo(f"[handoff] {from_agent} -> {to_agent}: {reason}", err=True)
                case RunCompleted(result=result):
                    click.echo()
                    click.echo(
                        f"[done] agent={result.final_agent} turns={result.turn_count} "
                        f"tool_calls={result.tool_call_count}",
                        err=True,
                    )
                    return 0
                case RunFailed(error=error):
                    click.echo()
                    click.echo(f"Error: {error}", err=True)
                    return 1
    return 1


async def _main(settings: Settings, agent: Agent, prompt: str, use_mcp: bool) -> int:
    if use_mcp and settings.mcp_servers:
        tools = await MCPToolSource.fetch_all(settings.mcp_configs())
        agent = agent.with_tools(*tools)
    runner = Runner.from_settings(settings)
    return await run_prompt(runner, agent, prompt)


@click.command()
@click.argument("prompt")
@click.option("--name", default="Assistant", show_default=True, help="Agent name")
@click.option(
    "--instructions",
    default="You are a helpful assistant.",
    show_default=True,
    help="System prompt for the agent",
)
@click.option("--model", default=None, help="Model override (default: AGENT_RUNTIME_LLM__MODEL)")
@click.option("--max-turns", type=click.IntRange(min=1), default=None, help="Turn bound for the run")
@click.option("--mcp/--no-mcp", "use_mcp", default=True, help="Offer tools from configured MCP servers")
def main(prompt, name, instructions, model, max_turns, use_mcp):
    settings = Settings()
    if max_turns is not None:
        settings.runner.max_turns = max_turns
    configure_logging(settings.logging.level, json_output=settings.logging.json_output)

    agent = Agent(name=name, instructions=instructions, model=model)
    sys.exit(asyncio.run(_main(settings, agent, prompt, use_mcp)))


if __name__ == "__main__":
    sys.exit(main())
