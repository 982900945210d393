"""Script execution against the selected webview."""

import logging
from typing import Optional

from .exceptions import ScriptEvaluationError
from .logstore import LogEntry, ORIGIN_COMMAND, format_payload
from .router import MessageRouter
from .selection import SelectionController

logger = logging.getLogger(__name__)

SUCCESS_PREFIX = "> Command execution: SUCCESS."
FAILURE_PREFIX = "> Command execution: FAILED."


class CommandExecutor:
    """Runs user scripts and logs exactly one outcome per call.

    Calls are independent: two in-flight executions do not wait for each
    other, and each appends to the log of the webview that was selected when
    it started.
    """

    def __init__(self, selection: SelectionController, router: MessageRouter):
        self.selection = selection
        self.router = router

    async def execute(self, script: str) -> Optional[LogEntry]:
        """Evaluate script in the selected webview.

        Returns:
            The appended entry, or None when nothing was logged (no selection,
            blank script, or an undefined result)
        """
        script = script.strip()
        webview = self.selection.selected
        if not script or webview is None:
            return None

        key = webview.key
        try:
            result = await webview.evaluate(script)
        except ScriptEvaluationError as e:
            logger.debug(f"Command failed in webview {key}: {e}")
            return self.router.record(
                key,
                f"{FAILURE_PREFIX} Error:\n '{e}'",
                origin=ORIGIN_COMMAND,
            )

        if result is None:
            return None
        return self.router.record(
            key,
            f"{SUCCESS_PREFIX} Result:\n'{format_payload(result)}'",
            origin=ORIGIN_COMMAND,
        )
