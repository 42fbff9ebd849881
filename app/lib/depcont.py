import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

import ujson
from aiohttp import ClientSession, ClientTimeout

from lib.config import Config
from lib.kv_store import KVStore


@dataclass
class DepContainer:
    cfg: Optional[Config] = None
    loop: Optional[asyncio.AbstractEventLoop] = None
    session: Optional[ClientSession] = None
    kv_store: Optional[KVStore] = None

    gateway = None  # type: 'ChainGateway'

    def make_http_session(self):
        session_timeout = self.cfg.as_interval('rpc.timeout', 15.0)
        self.session = ClientSession(
            json_serialize=ujson.dumps,
            timeout=ClientTimeout(total=session_timeout))
        logging.info(f'HTTP Session timeout is {session_timeout} sec')

    async def close(self):
        if self.session is not None and not self.session.closed:
            await self.session.close()
        self.session = None
