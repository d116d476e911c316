"""
Startup readiness gate.

Blocks application startup until each backing service accepts TCP
connections. There is no retry policy beyond the polling loop itself: a
service that stays unreachable past the timeout aborts startup.
"""

import asyncio
from dataclasses import dataclass
from typing import Iterable

from loguru import logger

from .exceptions import DependencyUnavailable


@dataclass(frozen=True)
class ServiceTarget:
    """A backing service reachable over TCP."""
    name: str
    host: str
    port: int


async def _try_connect(host: str, port: int, timeout: float) -> bool:
    try:
        _, writer = await asyncio.wait_for(
            asyncio.open_connection(host, port), timeout=timeout
        )
    except (OSError, asyncio.TimeoutError):
        return False
    writer.close()
    try:
        await writer.wait_closed()
    except OSError:
        pass
    return True


async def wait_for_port(
    target: ServiceTarget,
    timeout: float = 60.0,
    interval: float = 0.25,
) -> None:
    """
    Poll a TCP connect to ``target`` until it succeeds.

    Args:
        target: Service to wait for
        timeout: Total seconds to wait before giving up
        interval: Seconds between attempts

    Raises:
        DependencyUnavailable: If the service is still unreachable after ``timeout``
    """
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    attempts = 0

    while True:
        attempts += 1
        remaining = deadline - loop.time()
        if remaining <= 0:
            break
        if await _try_connect(target.host, target.port, min(remaining, max(interval, 1.0))):
            logger.debug(f"{target.name} reachable after {attempts} attempt(s)")
            return
        if deadline - loop.time() <= 0:
            break
        await asyncio.sleep(min(interval, max(deadline - loop.time(), 0)))

    logger.error(
        f"{target.name} at {target.host}:{target.port} unreachable "
        f"after {attempts} attempt(s)"
    )
    raise DependencyUnavailable(target.name, target.host, target.port, timeout)


async def wait_for_services(
    targets: Iterable[ServiceTarget],
    timeout: float = 60.0,
    interval: float = 0.25,
) -> None:
    """Wait for each service in turn; the first failure is fatal."""
    for target in targets:
        logger.info(f"Waiting on {target.name} availability {target.host}:{target.port}")
        await wait_for_port(target, timeout=timeout, interval=interval)
        logger.info(f"{target.name.capitalize()} available at {target.host}:{target.port}")
