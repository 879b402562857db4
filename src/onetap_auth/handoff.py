"""
Browser-redirect hand-off.

The controller awaits launch(); the web host sends the browser to the launch URL
and, when the provider redirects back (or the user cancels), resolves the
pending future with the callback parameters. There is no timeout: an abandoned
hand-off stays pending until the screen is torn down.
"""

import asyncio
import logging
from typing import Optional

from onetap_auth.protocol import HandOff, LaunchRequest, LaunchResult

logger = logging.getLogger(__name__)


class RedirectHandOff(HandOff):
    """One pending hand-off per sign-in screen."""

    def __init__(self) -> None:
        self._request: Optional[LaunchRequest] = None
        # Future resolved with the LaunchRequest once the controller launches
        self._opened: Optional[asyncio.Future] = None
        # Future resolved with the LaunchResult by the platform
        self._result: Optional[asyncio.Future] = None

    @property
    def pending(self) -> bool:
        """True while the controller is waiting for the provider UI to return."""
        return self._result is not None and not self._result.done()

    @property
    def request(self) -> Optional[LaunchRequest]:
        return self._request

    def expect_launch(self) -> asyncio.Future:
        """Return a future that resolves with the next LaunchRequest passed to launch()."""
        self._opened = asyncio.get_running_loop().create_future()
        return self._opened

    async def launch(self, request: LaunchRequest) -> LaunchResult:
        """Publish the launch request and wait for the platform to resolve it."""
        self._request = request
        self._result = asyncio.get_running_loop().create_future()
        if self._opened is not None and not self._opened.done():
            self._opened.set_result(request)
        logger.debug("Hand-off launched (state=%s)", request.state)
        try:
            return await self._result
        finally:
            self._result = None
            self._request = None

    def resolve(self, result: LaunchResult) -> bool:
        """Deliver the hand-off result. Returns False when nothing is awaiting one."""
        if not self.pending:
            logger.warning("No sign-in hand-off is awaiting a result")
            return False
        self._result.set_result(result)
        return True

    def cancel(self) -> bool:
        """Resolve the pending hand-off as cancelled by the user."""
        return self.resolve(LaunchResult.cancel())
