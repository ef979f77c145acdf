"""HTTP resource loader backed by aiohttp.

The preloader treats its load primitive as a black box. This is the
default one: a GET whose body is read and thrown away, so the remote
resource ends up warm in any intermediate HTTP caches (CDN, proxy).
"""

from __future__ import annotations

import asyncio
import logging
import types

import aiohttp
from typing_extensions import Self

from larder.config.models import PreloadSettings
from larder.services.preloader import Priority
from larder.shared.constants import NetworkConfig
from larder.shared.errors import InfrastructureError, create_network_error

logger = logging.getLogger(__name__)


class HttpResourceLoader:
    """Loads remote resources over HTTP for the preloader.

    Use as an async context manager so the underlying
    ``aiohttp.ClientSession`` is opened and closed exactly once.

    Args:
        timeout: Total request timeout in seconds
        user_agent: User-Agent header value
        session: Existing session to reuse; it is not closed on exit

    Example:
        >>> async with HttpResourceLoader(timeout=10) as http:
        ...     await http("https://cdn.example.com/products/42.webp", Priority.HIGH)
    """

    def __init__(
        self,
        timeout: float = NetworkConfig.REQUEST_TIMEOUT,
        user_agent: str = NetworkConfig.USER_AGENT,
        *,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        self.timeout = timeout
        self.user_agent = user_agent
        self._session = session
        self._owns_session = session is None

    @classmethod
    def from_settings(cls, settings: PreloadSettings) -> HttpResourceLoader:
        return cls(timeout=settings.request_timeout, user_agent=settings.user_agent)

    async def __aenter__(self) -> Self:
        if self._session is None:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(
                    total=self.timeout,
                    connect=min(self.timeout, NetworkConfig.CONNECT_TIMEOUT),
                ),
                headers={"User-Agent": self.user_agent},
            )
            self._owns_session = True
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: types.TracebackType | None,
    ) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the session if this loader created it."""
        if self._session is not None and self._owns_session and not self._session.closed:
            await self._session.close()
        if self._owns_session:
            self._session = None

    async def __call__(self, locator: str, priority: Priority) -> None:
        """Fetch ``locator`` and discard the body.

        Raises:
            InfrastructureError: NETWORK_ERROR for HTTP status >= 400,
                transport failures and timeouts
        """
        if self._session is None:
            raise create_network_error(
                message="HttpResourceLoader used outside its async context",
                resource=locator,
                operation="load_resource",
            )

        headers = {NetworkConfig.PRIORITY_HEADER: priority.value}
        try:
            async with self._session.get(locator, headers=headers) as response:
                if response.status >= NetworkConfig.HTTP_ERROR_THRESHOLD:
                    raise create_network_error(
                        message=f"HTTP {response.status} for {locator}",
                        resource=locator,
                        operation="load_resource",
                        status_code=response.status,
                    )
                async for _chunk in response.content.iter_chunked(NetworkConfig.CHUNK_SIZE):
                    pass
        except InfrastructureError:
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise create_network_error(
                message=f"Request failed for {locator}: {e!s}",
                resource=locator,
                operation="load_resource",
                original_error=e,
            ) from e

        logger.debug("Loaded resource %s (%s priority)", locator, priority.value)


__all__ = ["HttpResourceLoader"]
