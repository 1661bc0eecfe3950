"""OAuth callback server for the Mercedes me account.

The user opens ``http://<ip>:<port>/mb-callback`` in a browser, follows the
link to the Mercedes login and is redirected back with ``?code=...``.
"""

from __future__ import annotations

import html
import logging
from collections.abc import Awaitable, Callable

from aiohttp import web

from homepoll._constants import MB_CALLBACK_PATH

_logger = logging.getLogger(__name__)

CodeCallback = Callable[[str], Awaitable[None]]

_PAGE = """<!DOCTYPE html>
<html>
<head><title>Mercedes me authorization</title></head>
<body>
<h1>Mercedes me authorization</h1>
<p><a href="{url}">Start Authorization</a></p>
</body>
</html>
"""


class CallbackServer:
    """Serves the callback path on its own aiohttp runner.

    Parameters
    ----------
    host, port : str, int
        Listen address; must match the redirect URI registered with the
        client id.
    authorization_url : str
        Linked from the landing page.
    on_code : Callable
        Awaited with every received authorization code.
    """

    def __init__(self, host: str, port: int, authorization_url: str, on_code: CodeCallback) -> None:
        self.host = host
        self.port = port
        self.authorization_url = authorization_url
        self._on_code = on_code
        self._runner: web.AppRunner | None = None

    def build_app(self) -> web.Application:
        app = web.Application()
        app.router.add_get(MB_CALLBACK_PATH, self._handle_callback)
        return app

    async def _handle_callback(self, request: web.Request) -> web.StreamResponse:
        code = request.query.get("code")
        if code:
            _logger.debug("Authorization code received on %s", request.path)
            await self._on_code(code)
            return web.json_response({"status": "ok"})
        return web.Response(text=_PAGE.format(url=html.escape(self.authorization_url)), content_type="text/html")

    @property
    def running(self) -> bool:
        return self._runner is not None

    async def start(self) -> None:
        """Listen on the configured address.

        Raises :class:`OSError` when the address cannot be bound; nothing
        stays allocated in that case.
        """
        if self._runner is not None:
            return
        runner = web.AppRunner(self.build_app())
        await runner.setup()
        site = web.TCPSite(runner, self.host, self.port)
        try:
            await site.start()
        except OSError:
            await runner.cleanup()
            raise
        self._runner = runner
        _logger.info("Callback server listening on http://%s:%d%s", self.host, self.port, MB_CALLBACK_PATH)

    async def stop(self) -> None:
        runner, self._runner = self._runner, None
        if runner is not None:
            await runner.cleanup()
