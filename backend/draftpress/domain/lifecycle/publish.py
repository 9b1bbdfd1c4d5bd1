from enum import Enum
from typing import Dict, Set


class PublishState(str, Enum):
    COLLECTING = "collecting"
    DIFFING = "diffing"
    WRITING = "writing"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"


# Explicit allowed state transitions
ALLOWED_PUBLISH_TRANSITIONS: Dict[PublishState, Set[PublishState]] = {
    PublishState.COLLECTING: {PublishState.DIFFING, PublishState.ROLLED_BACK},
    PublishState.DIFFING: {PublishState.WRITING, PublishState.ROLLED_BACK},
    PublishState.WRITING: {PublishState.COMMITTED, PublishState.ROLLED_BACK},
    PublishState.COMMITTED: set(),
    PublishState.ROLLED_BACK: set(),
}


def assert_publish_transition(*, from_state: PublishState, to_state: PublishState) -> None:
    """
    Guards publish run transitions.
    Committed and rolled back are terminal.
    """
    allowed = ALLOWED_PUBLISH_TRANSITIONS.get(from_state, set())

    if to_state not in allowed:
        raise ValueError(
            f"Illegal publish transition: {from_state.value} → {to_state.value}"
        )
