"""CI context detection — decides whether and how screenshots go to Skia Gold."""

from __future__ import annotations

import functools
import logging
import os
from collections.abc import Mapping
from enum import Enum

logger = logging.getLogger(__name__)

TASK_ID_VAR = "SWARMING_TASK_ID"
GOLDCTL_VAR = "GOLDCTL"
TRYJOB_VAR = "GOLD_TRYJOB"


class CIContext(str, Enum):
    LOCAL = "local"
    PRE_SUBMIT = "pre_submit"
    POST_SUBMIT = "post_submit"

    @property
    def is_ci(self) -> bool:
        return self is not CIContext.LOCAL


def classify_ci_context(env: Mapping[str, str]) -> CIContext:
    """Map an environment snapshot to a CI context.

    CI requires both a task id and a goldctl binary. Inside CI a tryjob ref
    marks pre-submit; everything else is post-submit.
    """
    if TASK_ID_VAR not in env or GOLDCTL_VAR not in env:
        return CIContext.LOCAL
    if TRYJOB_VAR in env:
        return CIContext.PRE_SUBMIT
    return CIContext.POST_SUBMIT


@functools.lru_cache(maxsize=1)
def ci_context() -> CIContext:
    """Classify the process environment once and reuse the answer."""
    context = classify_ci_context(os.environ)
    logger.debug("Detected CI context: %s", context.value)
    return context
