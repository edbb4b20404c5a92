"""
Stage context managers that frame pipeline stages in console and logs.
"""

import logging
import time
from contextlib import contextmanager

from rich.console import Console
from rich.rule import Rule

from expander.utils import structured_log

logger = logging.getLogger(__name__)
console = Console(stderr=True)


@contextmanager
def stage_context(stage: str, show_rule: bool = False, **summary):
    """
    Context manager for one pipeline stage.

    Logs start/finish (with elapsed time) and records the transition in the
    JSONL audit trail. Exceptions are logged and re-raised.

    Args:
        stage: Stage name
        show_rule: Print a rich rule around the stage
        **summary: Extra fields recorded with the start event
    """
    start = time.perf_counter()
    structured_log.bind_stage(stage)
    structured_log.log_stage(stage, "start", **summary)
    if show_rule:
        console.print(Rule(f"[dim]Stage: {stage}[/dim]", style="dim"))
    logger.debug("=== Stage: %s ===", stage)
    try:
        yield
    except Exception as e:
        logger.error("=== Stage %s failed: %s ===", stage, e)
        structured_log.log_stage(stage, "failed", error=str(e))
        raise
    elapsed = time.perf_counter() - start
    structured_log.log_stage(stage, "done", elapsed_s=round(elapsed, 2))
    if show_rule:
        console.print(Rule(f"[dim]Stage {stage} completed ({elapsed:.1f}s)[/dim]", style="dim"))
    logger.debug("=== Stage %s completed in %.2fs ===", stage, elapsed)
