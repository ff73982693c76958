"""
Alias call stage transitions.

Stages only move forward. `failed` is reachable from every non-terminal
stage; `completed` and `failed` never change again.
"""

from telco_gateway.calls.models import CallStage

LEG_B_DIALING_EVENT = "leg-b-dialing"
LEG_B_ANSWERED_EVENT = "leg-b-answered"

STAGE_ORDER: dict[CallStage, int] = {
    CallStage.VALIDATING: 0,
    CallStage.LEG_A_DIALING: 1,
    CallStage.LEG_A_RINGING: 2,
    CallStage.LEG_A_ANSWERED: 3,
    CallStage.LEG_B_DIALING: 4,
    CallStage.BRIDGED: 5,
    CallStage.COMPLETED: 6,
}

TERMINAL_STAGES: frozenset[CallStage] = frozenset({CallStage.COMPLETED, CallStage.FAILED})

# Status events that advance the session; everything else fails it
EVENT_STAGE_MAP: dict[str, CallStage] = {
    "queued": CallStage.LEG_A_DIALING,
    "initiated": CallStage.LEG_A_DIALING,
    "ringing": CallStage.LEG_A_RINGING,
    "answered": CallStage.LEG_A_ANSWERED,
    "in-progress": CallStage.LEG_A_ANSWERED,
    LEG_B_DIALING_EVENT: CallStage.LEG_B_DIALING,
    LEG_B_ANSWERED_EVENT: CallStage.BRIDGED,
    "completed": CallStage.COMPLETED,
}

MACHINE_ANSWERS = ("machine", "fax")


def is_terminal(stage: CallStage) -> bool:
    return stage in TERMINAL_STAGES


def is_machine_answer(answered_by: str | None) -> bool:
    if not answered_by:
        return False
    return answered_by.strip().lower().startswith(MACHINE_ANSWERS)


def next_stage(
    current: CallStage,
    event: str,
    has_error: bool = False,
    answered_by: str | None = None,
) -> CallStage:
    """Return the stage after applying `event` to a session at `current`.

    Returns `current` for events that would move the stage backwards or
    sideways, and for any event once the session is terminal.
    """
    if is_terminal(current):
        return current

    if has_error:
        return CallStage.FAILED

    target = EVENT_STAGE_MAP.get(event.strip().lower())
    if target is None:
        return CallStage.FAILED

    if target == CallStage.LEG_A_ANSWERED and is_machine_answer(answered_by):
        return CallStage.FAILED

    if STAGE_ORDER[target] > STAGE_ORDER[current]:
        return target
    return current
