"""
Best-effort side effects: persistence that must never fail the surrounding call.
"""

from typing import Any, Callable, Optional

from ..util.logging import logger


def best_effort(action: Callable[..., Any], *args, description: str = "side effect", **kwargs) -> Optional[Any]:
    """Run action and return its result, or log the failure and return None."""
    try:
        return action(*args, **kwargs)
    except Exception as e:
        logger.error(f"Best-effort {description} failed: {e}")
        return None
