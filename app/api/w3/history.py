import asyncio
from typing import Callable, List, Optional

from api.w3.errors import InvalidInput
from api.w3.networks import NetworkRegistry
from api.w3.web3_helper import Web3Helper, to_checksum, hex_to_int, same_address
from lib.config import Config
from lib.logs import WithLogger
from lib.money import format_units
from models.tx import TransactionRecord, TxStatus, TxDirection

DEFAULT_MAX_DEPTH = 1000
DEFAULT_MAX_BLOCKS = 100
DEFAULT_LIMIT = 20


class BlockSkipped(Exception):
    pass


class TransactionHistoryScanner(WithLogger):
    """
    Rebuilds the recent transactions of an address by walking blocks backward from the tip.
    Only a bounded window is inspected, so the result is a best effort view of the latest activity.
    """

    def __init__(self, cfg: Config, networks: NetworkRegistry, helper_factory: Callable[[str], Web3Helper]):
        super().__init__()
        self.networks = networks
        self.helper_factory = helper_factory
        self.max_depth = cfg.as_int('history.max_depth', DEFAULT_MAX_DEPTH)
        self.max_blocks = cfg.as_int('history.max_blocks', DEFAULT_MAX_BLOCKS)

    @staticmethod
    def classify(tx: dict, address: str) -> Optional[str]:
        sender, receiver = tx.get('from'), tx.get('to')
        if same_address(sender, address):
            return TxDirection.SENT
        if same_address(receiver, address):
            return TxDirection.RECEIVED
        return None

    async def _scan_block(self, helper: Web3Helper, number: int, address: str,
                          decimals=18) -> List[TransactionRecord]:
        block = await helper.get_block(number, full_transactions=True)
        if not block:
            raise BlockSkipped(f'block #{number} not available')

        timestamp = hex_to_int(block.get('timestamp'))
        matching = []
        for tx in block.get('transactions') or []:
            if not isinstance(tx, dict):
                continue
            direction = self.classify(tx, address)
            if direction:
                matching.append((tx, direction))

        if not matching:
            return []

        receipts = await asyncio.gather(*[
            helper.get_transaction_receipt(tx['hash']) for tx, _ in matching
        ])

        records = []
        for (tx, direction), receipt in zip(matching, receipts):
            # no receipt means no confirmed success
            receipt = receipt or {}
            status = TxStatus.SUCCESS if hex_to_int(receipt.get('status', '0x0')) == 1 else TxStatus.FAILED
            gas_price = hex_to_int(tx.get('gasPrice') or receipt.get('effectiveGasPrice'))
            records.append(TransactionRecord(
                hash=tx['hash'],
                block_number=number,
                timestamp=timestamp,
                from_address=to_checksum(tx['from']),
                to_address=to_checksum(tx['to']) if tx.get('to') else '',
                value_native=format_units(hex_to_int(tx.get('value')), decimals),
                gas_used=hex_to_int(receipt.get('gasUsed')),
                gas_price=gas_price,
                status=status,
                direction=direction,
            ))
        return records

    async def history(self, address: str, network_key: str, limit=DEFAULT_LIMIT) -> List[TransactionRecord]:
        if int(limit) <= 0:
            raise InvalidInput(f'limit must be positive, got {limit}')

        network = self.networks.get(network_key)
        address = to_checksum(address)
        helper = self.helper_factory(network.key)

        tip = await helper.block_number()
        from_block = max(0, tip - self.max_depth)
        budget = min(self.max_blocks, tip - from_block)
        self.logger.debug(f'Scanning {budget} blocks down from #{tip} for {address}.')

        records: List[TransactionRecord] = []
        for i in range(budget):
            number = tip - i
            try:
                block_records = await self._scan_block(helper, number, address, network.native_token.decimals)
            except Exception as e:
                self.logger.warning(f'Skipping block #{number}: {type(e).__name__}: {e}')
                continue

            records.extend(block_records)
            if len(records) >= limit:
                break

        records.sort(key=lambda r: r.timestamp, reverse=True)
        return records[:limit]
