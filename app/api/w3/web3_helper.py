import asyncio
from typing import Optional

from web3 import Web3

from api.w3.endpoint_pool import EndpointPool
from api.w3.errors import InvalidAddress
from lib.constants import RpcMethods
from lib.logs import WithLogger
from lib.utils import RetryPolicy


def hex_to_int(value) -> int:
    if value is None:
        return 0
    if isinstance(value, int):
        return value
    return Web3.to_int(hexstr=value) if value not in ('0x', '') else 0


def to_checksum(address: str) -> str:
    address = str(address or '').strip()
    if not Web3.is_address(address):
        raise InvalidAddress(f'Invalid address: {address!r}')
    return Web3.to_checksum_address(address)


def same_address(a: Optional[str], b: Optional[str]) -> bool:
    if not a or not b:
        return False
    return str(a).lower() == str(b).lower()


class Web3Helper(WithLogger):
    """Typed wrappers around the raw JSON-RPC methods of one network."""

    @property
    def logger_prefix(self):
        return f'[{self.pool.network_key}] '

    def __init__(self, pool: EndpointPool):
        self.pool = pool
        super().__init__()

    @property
    def network_key(self):
        return self.pool.network_key

    async def chain_id(self) -> int:
        return hex_to_int(await self.pool.call(RpcMethods.CHAIN_ID))

    async def block_number(self) -> int:
        return hex_to_int(await self.pool.call(RpcMethods.BLOCK_NUMBER))

    async def get_balance(self, address: str, block='latest') -> int:
        return hex_to_int(await self.pool.call(RpcMethods.GET_BALANCE, [address, block]))

    async def get_code(self, address: str, block='latest') -> str:
        return await self.pool.call(RpcMethods.GET_CODE, [address, block]) or '0x'

    async def eth_call(self, to: str, data: str, block='latest', sender: Optional[str] = None) -> str:
        tx = {'to': to, 'data': data}
        if sender:
            tx['from'] = sender
        return await self.pool.call(RpcMethods.CALL, [tx, block]) or '0x'

    async def get_block(self, number: int, full_transactions=True) -> Optional[dict]:
        return await self.pool.call(RpcMethods.GET_BLOCK_BY_NUMBER, [hex(number), full_transactions])

    async def get_transaction_receipt(self, tx_hash: str) -> Optional[dict]:
        return await self.pool.call(RpcMethods.GET_TX_RECEIPT, [tx_hash])

    async def get_transaction_count(self, address: str, block='pending') -> int:
        return hex_to_int(await self.pool.call(RpcMethods.GET_TX_COUNT, [address, block]))

    async def gas_price(self) -> int:
        return hex_to_int(await self.pool.call(RpcMethods.GAS_PRICE))

    async def estimate_gas(self, tx: dict) -> int:
        return hex_to_int(await self.pool.call(RpcMethods.ESTIMATE_GAS, [self.tx_to_rpc(tx)]))

    async def send_raw_transaction(self, raw_tx: str) -> str:
        return await self.pool.call(RpcMethods.SEND_RAW_TX, [raw_tx])

    async def wait_for_receipt(self, tx_hash: str, timeout=120.0, poll_interval=2.0) -> dict:
        """
        Polls for the receipt until it appears.
        Raises asyncio.TimeoutError if it does not show up in time.
        """
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        while True:
            receipt = await self.get_transaction_receipt(tx_hash)
            if receipt:
                return receipt
            if loop.time() >= deadline:
                raise asyncio.TimeoutError(f'No receipt for {tx_hash} after {timeout} sec')
            self.logger.debug(f'Waiting for receipt of {tx_hash}...')
            await asyncio.sleep(poll_interval)

    async def handshake(self, retry: RetryPolicy) -> int:
        return await retry.run(self.chain_id, name=f'{self.network_key} handshake')

    @staticmethod
    def tx_to_rpc(tx: dict) -> dict:
        result = {}
        for key, value in tx.items():
            if value is None:
                continue
            if isinstance(value, int) and key in ('value', 'gas', 'gasPrice', 'nonce', 'chainId'):
                value = hex(value)
            result[key] = value
        return result
