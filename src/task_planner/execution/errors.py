"""Error taxonomy for plan operations.

Each error carries a machine-readable ``code`` and a human-readable
``detail``. The manager converts them into rejected operation results at its
boundary, so callers receive a textual explanation instead of an exception.
"""


class PlannerError(Exception):
    code = "planner.error"

    def __init__(self, detail: str, code: str | None = None):
        self.code = code or self.code
        self.detail = detail
        super().__init__(detail)


class InvalidPlanError(PlannerError):
    """The plan definition is unusable (no steps, blank step text)."""

    code = "plan.invalid"


class NoPlanError(PlannerError):
    """A step-level operation was invoked before any plan exists."""

    code = "plan.missing"


class PlanTerminalError(PlannerError):
    """The plan is already completed or cancelled."""

    code = "plan.terminal"


class NoActiveStepError(PlannerError):
    """No step is currently in progress."""

    code = "step.no_active"


class StepAlreadyActiveError(PlannerError):
    """A step is already in progress and must finish first."""

    code = "step.already_active"


class InvalidTransitionError(PlannerError):
    """A status transition not present in the transition table."""

    code = "transition.invalid"


class InvalidArgumentsError(PlannerError):
    """An operation argument has the wrong type or shape."""

    code = "operation.invalid_arguments"
