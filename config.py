import os
from dataclasses import dataclass, field
from typing import Optional


def _env_int(name: str) -> Optional[int]:
    value = os.environ.get(name, '').strip()
    if not value:
        return None
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {value!r}") from None


@dataclass
class Config:
    """Process-level configuration for the duel bot core"""

    # Strategy used when a match does not name one: 'duel' or 'rollout'
    BOT_KIND: str = field(default_factory=lambda: os.environ.get('COUP_BOT_KIND', 'duel'))

    # Fixed seed for rollout search (unset = fresh entropy per call)
    ROLLOUT_SEED: Optional[int] = field(default_factory=lambda: _env_int('COUP_ROLLOUT_SEED'))


# Create global config instance
config = Config()
