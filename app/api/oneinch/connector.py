import asyncio
from typing import Optional

import aiohttp
import ujson
from pydantic import ValidationError

from api.w3.errors import QuoteFailed, SwapExecutionFailed, UnsupportedNetwork
from lib.config import Config
from lib.constants import ChainIds, HTTP_CLIENT_ID
from lib.logs import WithLogger
from models.oneinch import OneInchQuoteResponse, OneInchSwapResponse

DEFAULT_BASE_URL = 'https://api.1inch.dev/swap/v5.2'


class OneInchConnector(WithLogger):
    SUPPORTED_CHAIN_IDS = (
        ChainIds.ETHEREUM,
        ChainIds.OPTIMISM,
        ChainIds.BSC,
        ChainIds.POLYGON,
        ChainIds.ARBITRUM,
    )

    def __init__(self, session: aiohttp.ClientSession, base_url=DEFAULT_BASE_URL, api_key='', timeout=20.0):
        super().__init__()
        self.session = session
        self.base_url = base_url.rstrip('/')
        self.api_key = api_key
        self.timeout = aiohttp.ClientTimeout(total=timeout) if timeout else None

    @classmethod
    def from_config(cls, cfg: Config, session: aiohttp.ClientSession):
        return cls(
            session,
            base_url=cfg.as_str('aggregator.base_url', DEFAULT_BASE_URL),
            api_key=cfg.aggregator_api_key,
            timeout=cfg.as_interval('aggregator.timeout', '20s'),
        )

    def is_chain_supported(self, chain_id: int) -> bool:
        return chain_id in self.SUPPORTED_CHAIN_IDS

    def _url(self, chain_id: int, method: str):
        if not self.is_chain_supported(chain_id):
            raise UnsupportedNetwork(f'Chain {chain_id} is not supported by the aggregator')
        return f'{self.base_url}/{chain_id}/{method}'

    @property
    def _headers(self):
        headers = {'Accept': 'application/json', 'X-Client-ID': HTTP_CLIENT_ID}
        if self.api_key:
            headers['Authorization'] = f'Bearer {self.api_key}'
        return headers

    async def _get(self, url: str, params: dict) -> Optional[dict]:
        self.logger.debug(f'Aggregator GET "{url}" {params}')
        async with self.session.get(url, params=params, headers=self._headers, timeout=self.timeout) as resp:
            text = await resp.text()
            self.logger.debug(f'Aggregator RESPONSE ({resp.status}) "{url}"')
            if resp.status != 200:
                raise ConnectionError(f'HTTP {resp.status}: {text[:300]}')
            return ujson.loads(text)

    async def quote(self, chain_id: int, src: str, dst: str, amount: int) -> OneInchQuoteResponse:
        url = self._url(chain_id, 'quote')
        params = {
            'src': src,
            'dst': dst,
            'amount': str(amount),
            'includeProtocols': 'true',
            'includeGas': 'true',
        }
        try:
            data = await self._get(url, params)
            return OneInchQuoteResponse.model_validate(data)
        except (aiohttp.ClientError, asyncio.TimeoutError, ConnectionError, ValueError, ValidationError) as e:
            raise QuoteFailed(f'Quote {src} -> {dst} failed: {e}') from e

    async def swap(self, chain_id: int, src: str, dst: str, amount: int, from_address: str,
                   slippage: float) -> OneInchSwapResponse:
        url = self._url(chain_id, 'swap')
        params = {
            'src': src,
            'dst': dst,
            'amount': str(amount),
            'from': from_address,
            'slippage': str(slippage),
        }
        try:
            data = await self._get(url, params)
            return OneInchSwapResponse.model_validate(data)
        except (aiohttp.ClientError, asyncio.TimeoutError, ConnectionError, ValueError, ValidationError) as e:
            raise SwapExecutionFailed(f'Swap transaction for {src} -> {dst} failed: {e}') from e
