"""
Query entry point: resolve, run one status session, enforce the deadline
"""

import asyncio
import logging
from typing import Any, Optional, Union

from .config import ConfigManager
from .exceptions import QueryTimeout
from .protocol import ProtocolConfig, StatusSession
from parsers.status_parser import StatusParser, StatusResponse
from utils.network import AddressResolver, ServerAddress

logger = logging.getLogger(__name__)

class StatusClient:
    """Queries one server per call; holds no state between calls"""

    def __init__(self, config: Optional[ConfigManager] = None,
                 resolver: Optional[AddressResolver] = None,
                 parser: Optional[StatusParser] = None):
        self.config = config or ConfigManager()
        self.resolver = resolver or AddressResolver.from_config(self.config.resolver)
        self.parser = parser or StatusParser()
        self.protocol_config = ProtocolConfig.from_query_config(self.config.query)

    async def query(self, address: Union[str, ServerAddress],
                    timeout: Optional[float] = None) -> StatusResponse:
        """Query the server's status.

        Raises a QueryError subclass on failure. The whole operation,
        DNS included, must finish within ``timeout`` seconds or
        QueryTimeout is raised and the connection is closed.
        """
        if timeout is None:
            timeout = self.config.query.timeout

        try:
            return await asyncio.wait_for(self._query(address), timeout=timeout)
        except asyncio.TimeoutError as e:
            raise QueryTimeout(f"No response from {address} within {timeout}s") from e

    async def _query(self, address: Union[str, ServerAddress]) -> StatusResponse:
        target = await self.resolver.resolve(address)
        logger.debug(f"Querying {address} at {target}")

        session = StatusSession(target, self.protocol_config, self.parser)
        return await session.run()


async def query(address: Union[str, ServerAddress], timeout: Optional[float] = None,
                config: Optional[ConfigManager] = None, **kwargs: Any) -> StatusResponse:
    """Query a server using a throwaway StatusClient"""
    return await StatusClient(config, **kwargs).query(address, timeout)
