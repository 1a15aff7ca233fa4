"""Command-line driver for the task planner."""

import json
import sys
from pathlib import Path
from typing import Optional

import typer
from typing_extensions import Annotated

from task_planner.chat.tools import PlannerToolset
from task_planner.config import PlannerConfig
from task_planner.execution.manager import PlanManager
from task_planner.execution.observer import MetricsObserver, PlannerEvent
from task_planner.models.result import OperationResult
from task_planner.observability.logging import setup_logging
from task_planner.plan_file import PlanDefinition, PlanFileError, load_plan_file
from task_planner.ui.report import format_full_report, format_plan_markdown


app = typer.Typer(help="Task Planner: drive a goal-directed plan step by step")

REPL_HELP = """Commands:
  create <goal> | <description> | <step 1> | <step 2> ...
  next <result>      complete the current step and start the next one
  fail <message>     mark the current step as failed
  abort <reason>     abort the plan, skipping unfinished steps
  status             show the plan status
  report             show the plan as markdown
  metrics            show event counters
  help               show this help
  exit               quit"""


def get_manager(config: Optional[PlannerConfig] = None) -> PlanManager:
    config = config or PlannerConfig.from_env()
    # Events are echoed to the terminal instead of the log
    return PlanManager(config=config.model_copy(update={"emit_log_events": False}))


def _echo_event(event: PlannerEvent) -> None:
    typer.secho(f"   {event.message}", fg=typer.colors.BRIGHT_BLACK)


def _create_from_definition(
    manager: PlanManager, definition: PlanDefinition
) -> OperationResult:
    return manager.create_plan(
        definition.goal,
        definition.description,
        definition.step_descriptions(),
        definition.step_details(),
    )


def _echo_result(result: OperationResult) -> None:
    if result.status == "rejected":
        typer.secho(result.message, fg=typer.colors.RED, err=True)
    else:
        typer.echo(result.message)


@app.callback()
def main(
    log_level: Annotated[
        Optional[str], typer.Option(help="Log level (defaults to PLANNER_LOG_LEVEL)")
    ] = None,
):
    """Configures logging for every command."""
    config = PlannerConfig.from_env()
    setup_logging(log_level or config.log_level, config.log_format)


@app.command("run")
def run(
    plan_file: Annotated[
        Optional[Path], typer.Option(help="Create the plan from a YAML/JSON file")
    ] = None,
):
    """Starts an interactive session driving one plan at a time."""
    manager = get_manager()
    manager.add_observer(_echo_event)
    metrics = MetricsObserver()
    manager.add_observer(metrics)

    if plan_file is not None:
        try:
            definition = load_plan_file(plan_file)
        except PlanFileError as e:
            typer.echo(f"Error: {e}", err=True)
            raise typer.Exit(code=1)
        _echo_result(_create_from_definition(manager, definition))

    typer.echo("Type 'help' for commands, 'exit' to quit.")
    while True:
        typer.echo("planner> ", nl=False)
        line = sys.stdin.readline()
        if not line:
            break

        command, _, rest = line.strip().partition(" ")
        command = command.lower()
        rest = rest.strip()

        if not command:
            continue
        if command in ("exit", "quit"):
            break
        if command == "help":
            typer.echo(REPL_HELP)
        elif command == "create":
            parts = [p.strip() for p in rest.split("|")]
            if len(parts) < 3:
                typer.echo(
                    "Usage: create <goal> | <description> | <step 1> | ...", err=True
                )
                continue
            _echo_result(manager.create_plan(parts[0], parts[1], parts[2:]))
        elif command == "next":
            _echo_result(manager.execute_next_step(rest))
        elif command == "fail":
            _echo_result(manager.mark_step_failed(rest))
        elif command == "abort":
            _echo_result(manager.abort_plan(rest))
        elif command == "status":
            _echo_result(manager.get_plan_status())
        elif command == "report":
            plan = manager.current_plan
            typer.echo(format_plan_markdown(plan) if plan else "No active plan.")
        elif command == "metrics":
            typer.echo(metrics.metrics.render_markdown())
        else:
            typer.echo(f"Unknown command: {command}. Type 'help'.", err=True)

    typer.echo("Bye!")


@app.command("demo")
def demo(
    plan_file: Annotated[Path, typer.Argument(help="Path to a YAML/JSON plan file")],
    result: Annotated[
        str, typer.Option(help="Result text recorded for every step")
    ] = "done",
):
    """Creates a plan from a file and drives it to completion."""
    try:
        definition = load_plan_file(plan_file)
    except PlanFileError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)

    manager = get_manager()
    created = _create_from_definition(manager, definition)
    _echo_result(created)
    if not created.ok:
        raise typer.Exit(code=1)

    plan = manager.current_plan
    while plan is not None and not plan.is_terminal:
        outcome = manager.execute_next_step(result)
        _echo_result(outcome)
        if not outcome.ok:
            raise typer.Exit(code=1)

    typer.echo("")
    typer.echo(format_full_report(plan))


@app.command("schema")
def schema():
    """Prints the tool definitions as JSON."""
    toolset = PlannerToolset(get_manager(PlannerConfig()))
    typer.echo(json.dumps(toolset.tool_definitions(), indent=2))


if __name__ == "__main__":
    app()
