"""
Decision Logger

One line per decision the bot makes, on a dedicated logger so a harness can
route decisions separately from the debug chatter of the other modules.

Handlers are left to the embedding application; this module never touches
files itself.
"""

import logging
from typing import Optional

decision_logger = logging.getLogger("coupbot.decisions")


def log_decision(
    bot_name: str,
    point: str,
    choice: str,
    reasoning: str = "",
    history_len: Optional[int] = None,
):
    """
    Log a decision with its reasoning.

    Args:
        bot_name: Name of the deciding player
        point: Decision point (turn, challenge_action, counter, ...)
        choice: The value returned to the engine, as text
        reasoning: Short human-readable reason
        history_len: Length of the public log at decision time
    """
    where = f" @ev{history_len}" if history_len is not None else ""
    entry = f"[{bot_name}{where}] {point}: {choice}"
    if reasoning:
        entry += f" ({reasoning})"
    decision_logger.info(entry)
