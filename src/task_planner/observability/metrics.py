from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class Timing(BaseModel):
    """Running count, total and maximum of observed durations, in seconds."""

    count: int = 0
    total: float = 0.0
    max: float = 0.0

    @property
    def mean(self) -> float:
        return self.total / self.count if self.count else 0.0


class PlannerMetrics(BaseModel):
    model_config = ConfigDict(extra="forbid")

    counters: dict[str, int] = Field(
        default_factory=dict, description="Named counters for planner outcomes."
    )
    timings: dict[str, Timing] = Field(
        default_factory=dict, description="Named duration series, in seconds."
    )

    def inc(self, key: str, n: int = 1) -> None:
        self.counters[key] = int(self.counters.get(key, 0)) + n

    def get(self, key: str) -> int:
        return int(self.counters.get(key, 0))

    def observe(self, key: str, seconds: float) -> None:
        timing = self.timings.setdefault(key, Timing())
        timing.count += 1
        timing.total += seconds
        timing.max = max(timing.max, seconds)

    def timing(self, key: str) -> Optional[Timing]:
        return self.timings.get(key)

    @property
    def step_success_rate(self) -> Optional[float]:
        """Completed steps as a share of completed plus failed steps."""
        done = self.get("steps.completed")
        finished = done + self.get("steps.failed")
        return done / finished if finished else None

    def reset(self) -> None:
        self.counters.clear()
        self.timings.clear()

    def render_markdown(self) -> str:
        if not self.counters and not self.timings:
            return "No metrics yet."
        lines = ["### Planner metrics"]
        for k in sorted(self.counters.keys()):
            lines.append(f"- **{k}**: {self.counters[k]}")
        for k in sorted(self.timings.keys()):
            t = self.timings[k]
            lines.append(
                f"- **{k}**: n={t.count} mean={t.mean:.1f}s max={t.max:.1f}s"
            )
        rate = self.step_success_rate
        if rate is not None:
            lines.append(f"- **steps.success_rate**: {rate:.0%}")
        return "\n".join(lines)
