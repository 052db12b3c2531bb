"""
Two-branch join for a comparison run.

Uses python-statemachine so the "both finished" condition is an explicit
state instead of ad hoc flag checks.
"""
import logging

from statemachine import State, StateMachine

logger = logging.getLogger(__name__)


class RunJoin(StateMachine):
    """
    Join barrier over the two branches of a run.

    both_pending -> one_done -> both_done. Every branch reports exactly
    once; a third report is rejected by the machine (TransitionNotAllowed).
    """

    both_pending = State(initial=True)
    one_done = State()
    both_done = State(final=True)

    branch_done = both_pending.to(one_done) | one_done.to(both_done)

    @property
    def is_complete(self) -> bool:
        return self.current_state.id == "both_done"

    def on_enter_both_done(self) -> None:
        logger.debug("Both branches finished")
