import asyncio
import itertools
from typing import List, Optional

import ujson
from aiohttp import ClientSession, ClientTimeout, ClientError
from aiohttp.helpers import sentinel

from api.w3.errors import AllEndpointsUnavailable, RpcError
from lib.config import Config
from lib.constants import HTTP_CLIENT_ID
from lib.logs import WithLogger
from models.network import NetworkDescriptor

DEFAULT_RETRY_DELAY = 1.0
DEFAULT_TIMEOUT = 15.0


class EndpointTransportError(ConnectionError):
    pass


class JsonRpcClient:
    """Talks JSON-RPC 2.0 to a single HTTP endpoint."""

    _ids = itertools.count(1)

    def __init__(self, session: ClientSession, url: str, timeout: Optional[float] = None, logger=None,
                 extra_headers=None):
        self.session = session
        self.url = url
        self.timeout = ClientTimeout(total=timeout) if timeout else sentinel
        self.logger = logger
        self.headers = {
            'Content-Type': 'application/json',
            'X-Client-ID': HTTP_CLIENT_ID,
            **(extra_headers or {}),
        }

    async def request(self, method: str, params=None):
        payload = {
            'jsonrpc': '2.0',
            'id': next(self._ids),
            'method': method,
            'params': list(params or []),
        }
        if self.logger:
            self.logger.debug(f'RPC POST "{self.url}" {method}')

        async with self.session.post(self.url, data=ujson.dumps(payload), headers=self.headers,
                                     timeout=self.timeout) as resp:
            if resp.status != 200:
                raise EndpointTransportError(f'{self.url} responded with HTTP {resp.status}')
            text = await resp.text()

        try:
            reply = ujson.loads(text)
        except ValueError as e:
            raise EndpointTransportError(f'{self.url} returned malformed JSON') from e

        if not isinstance(reply, dict):
            raise EndpointTransportError(f'{self.url} returned unexpected reply type {type(reply).__name__}')

        if reply.get('error'):
            error = reply['error']
            if isinstance(error, dict):
                raise RpcError(error.get('message', 'unknown error'), error.get('code'), error.get('data'))
            raise RpcError(str(error))

        if 'result' not in reply:
            raise EndpointTransportError(f'{self.url} reply has neither result nor error')

        return reply['result']

    def __repr__(self) -> str:
        return f'JsonRpcClient({self.url!r})'


class EndpointPool(WithLogger):
    """
    Ordered list of JSON-RPC endpoints of one network.
    Every call starts from the primary endpoint and walks down the list on transport failures.
    A JSON-RPC error reply is a final answer and is never failed over.
    """

    TRANSPORT_ERRORS = (ClientError, asyncio.TimeoutError, ConnectionError, ValueError)

    @property
    def logger_prefix(self):
        return f'[{self.network_key}] '

    def __init__(self, network_key: str, urls: List[str], session: Optional[ClientSession] = None,
                 retry_delay=DEFAULT_RETRY_DELAY, timeout=DEFAULT_TIMEOUT):
        self.network_key = network_key
        super().__init__()

        if not urls:
            raise ValueError(f'No endpoints for network "{network_key}"')

        self.session = session
        self.retry_delay = retry_delay
        self.timeout = timeout
        self.urls = list(urls)
        self._clients = [self._make_client(url) for url in self.urls]

    def _make_client(self, url):
        return JsonRpcClient(self.session, url, timeout=self.timeout, logger=self.logger)

    @classmethod
    def from_config(cls, cfg: Config, network: NetworkDescriptor, session: ClientSession):
        return cls(
            network.key,
            list(network.endpoints),
            session=session,
            retry_delay=cfg.as_interval('rpc.retry_delay', DEFAULT_RETRY_DELAY),
            timeout=cfg.as_interval('rpc.timeout', DEFAULT_TIMEOUT),
        )

    @property
    def clients(self):
        return list(self._clients)

    async def call(self, method: str, params=None):
        last_error = None
        n = len(self._clients)
        for index, client in enumerate(self._clients, start=1):
            try:
                return await client.request(method, params)
            except RpcError:
                raise
            except self.TRANSPORT_ERRORS as e:
                last_error = e
                err_type = type(e).__name__
                self.logger.warning(f'#{index}/{n}. {method} failed at {client!r} (err: {err_type}: {e}).')

            if index < n and self.retry_delay:
                self.logger.debug(f'Delay before the next endpoint: {self.retry_delay} sec...')
                await asyncio.sleep(self.retry_delay)

        raise AllEndpointsUnavailable(
            f'All {n} endpoint(s) of "{self.network_key}" failed for {method}'
        ) from last_error

    def __repr__(self):
        return f'EndpointPool({self.network_key!r}, {len(self._clients)} endpoints)'
