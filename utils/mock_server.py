#!/usr/bin/env python3
"""
Mock server for exercising the uptime monitor locally.

The first path segment selects how a URL behaves:
- /ok/...    always 200
- /fail/...  always 500
- /flap/...  alternates between 200 and 503 every FLAP_PERIOD seconds
- /slow/...  200 after a delay longer than the default probe timeout
Anything else answers 404.
"""

import asyncio
import time

from aiohttp import web

# Constants
PORT = 8080
HOST = "localhost"
FLAP_PERIOD = 120
SLOW_DELAY_S = 20


async def handle_request(request: web.Request) -> web.Response:
    """
    Handle incoming HTTP requests according to their behaviour segment.

    Args:
        request: The incoming HTTP request

    Returns:
        A response whose status depends on the behaviour
    """
    behaviour = request.match_info["behaviour"]

    if behaviour == "ok":
        return web.Response(text="ok")
    if behaviour == "fail":
        return web.Response(status=500, text="failing on purpose")
    if behaviour == "flap":
        healthy = int(time.time() // FLAP_PERIOD) % 2 == 0
        return web.Response(status=200 if healthy else 503, text="flapping")
    if behaviour == "slow":
        await asyncio.sleep(SLOW_DELAY_S)
        return web.Response(text="finally")
    return web.Response(status=404, text="unknown behaviour")


async def init_app() -> web.Application:
    """
    Initialize the web application.

    Returns:
        Configured aiohttp web Application
    """
    app = web.Application()
    app.add_routes([web.get("/{behaviour}/{tail:.*}", handle_request)])
    return app


def run_server() -> None:
    """Run the mock server on HOST:PORT."""
    web.run_app(init_app(), host=HOST, port=PORT)


if __name__ == "__main__":
    print(f"Starting mock server at http://{HOST}:{PORT}")
    print(f"- /flap/ switches state every {FLAP_PERIOD}s, /slow/ answers after {SLOW_DELAY_S}s")
    run_server()
