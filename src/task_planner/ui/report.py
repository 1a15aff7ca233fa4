from __future__ import annotations

from ..models.plan import Plan
from ..models.step import Step


def format_step_line(step: Step) -> str:
    return str(step)


def format_plan_summary(plan: Plan) -> str:
    lines = [
        f"Plan: {plan.goal}",
        f"Status: {plan.status.value}",
        f"Progress: {plan.completed_steps}/{plan.total_steps} "
        f"({plan.progress_percentage}%)",
    ]
    if plan.description:
        lines.insert(1, f"Approach: {plan.description}")

    # Running plans have no stable duration yet
    if plan.is_terminal and plan.duration is not None:
        lines.append(f"Duration: {plan.duration.total_seconds():.1f}s")

    return "\n".join(lines)


def format_step_list(plan: Plan, indent: str = "  ") -> str:
    lines: list[str] = []
    for s in plan.steps:
        lines.append(f"{indent}{format_step_line(s)}")
        if s.details:
            lines.append(f"{indent}    {s.details}")
    return "\n".join(lines)


def format_full_report(plan: Plan) -> str:
    return f"{format_plan_summary(plan)}\n\nSteps:\n{format_step_list(plan)}"


def format_plan_markdown(plan: Plan) -> str:
    lines: list[str] = [f"### Plan: {plan.goal}"]
    if plan.description:
        lines.append(f"_{plan.description}_")
    lines.append("")
    lines.append(
        f"**Status:** `{plan.status.value}` | "
        f"**Progress:** {plan.completed_steps}/{plan.total_steps} "
        f"({plan.progress_percentage}%)"
    )
    lines.append("")

    for s in plan.steps:
        line = f"- {s.status_symbol} **Step {s.id}**: {s.description}"
        if s.error_message:
            line += f" (error: {s.error_message})"
        elif s.result:
            line += f" ({s.result})"
        lines.append(line)
        if s.details:
            lines.append(f"  - {s.details}")

    if plan.has_failures:
        lines.append("")
        lines.append(f"⚠ {plan.failed_steps} step(s) failed.")

    return "\n".join(lines)
