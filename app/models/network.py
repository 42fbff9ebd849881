from dataclasses import dataclass, field
from typing import Dict, Tuple

from models.token import TokenDescriptor


@dataclass(frozen=True)
class NativeToken:
    symbol: str
    name: str
    decimals: int = 18


@dataclass(frozen=True)
class NetworkDescriptor:
    key: str
    chain_id: int
    name: str
    primary_endpoint: str
    backup_endpoints: Tuple[str, ...] = ()
    native_token: NativeToken = NativeToken('ETH', 'Ether')
    known_tokens: Dict[str, TokenDescriptor] = field(default_factory=dict)
    router_address: str = ''
    quoter_address: str = ''
    explorer_url: str = ''
    multicall_address: str = ''
    average_block_time: float = 12.0

    @property
    def endpoints(self) -> Tuple[str, ...]:
        return (self.primary_endpoint, *self.backup_endpoints)

    def explorer_tx_url(self, tx_hash: str) -> str:
        return f'{self.explorer_url.rstrip("/")}/tx/{tx_hash}' if self.explorer_url else ''

    def explorer_address_url(self, address: str) -> str:
        return f'{self.explorer_url.rstrip("/")}/address/{address}' if self.explorer_url else ''

    def __hash__(self):
        return hash((self.key, self.chain_id))

    def __repr__(self):
        return f'NetworkDescriptor({self.key!r}, chain_id={self.chain_id})'
