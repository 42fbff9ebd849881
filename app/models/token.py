from dataclasses import dataclass
from typing import Optional, Union

from lib.constants import NATIVE_TOKEN_ADDRESS


@dataclass(frozen=True)
class TokenDescriptor:
    address: str
    symbol: str
    name: str
    decimals: int
    network: str = ''
    is_custom: bool = False
    added_at: Optional[float] = None

    @property
    def is_native(self):
        return self.address.lower() == NATIVE_TOKEN_ADDRESS

    @property
    def key(self):
        return self.network, self.address.lower()

    def same_address(self, address: str) -> bool:
        return self.address.lower() == str(address).strip().lower()

    def to_dict(self) -> dict:
        return {
            'address': self.address,
            'symbol': self.symbol,
            'name': self.name,
            'decimals': self.decimals,
            'networkKey': self.network,
            'addedAt': self.added_at,
        }

    @classmethod
    def from_dict(cls, d: dict) -> 'TokenDescriptor':
        return cls(
            address=d['address'],
            symbol=str(d.get('symbol', '')),
            name=str(d.get('name', '')),
            decimals=int(d.get('decimals', 18)),
            network=d.get('networkKey', ''),
            is_custom=True,
            added_at=d.get('addedAt'),
        )


@dataclass(frozen=True)
class ValidToken:
    address: str
    symbol: str
    name: str
    decimals: int
    total_supply_raw: int
    total_supply: str

    is_valid = True

    def to_descriptor(self, network: str, added_at=None) -> TokenDescriptor:
        return TokenDescriptor(
            address=self.address,
            symbol=self.symbol,
            name=self.name,
            decimals=self.decimals,
            network=network,
            is_custom=True,
            added_at=added_at,
        )


@dataclass(frozen=True)
class InvalidToken:
    address: str
    reason: str

    is_valid = False


TokenValidation = Union[ValidToken, InvalidToken]


@dataclass
class TokenBalance:
    token_address: str
    symbol: str
    name: str
    raw_balance: int
    decimals: int
    formatted_balance: str
    error: str = ''

    @property
    def is_zero(self):
        return self.raw_balance == 0


@dataclass
class BalanceSnapshot:
    address: str
    network: str
    balances: list

    def by_symbol(self, symbol: str) -> Optional[TokenBalance]:
        return next((b for b in self.balances if b.symbol == symbol), None)

    def by_address(self, address: str) -> Optional[TokenBalance]:
        address = address.lower()
        return next((b for b in self.balances if b.token_address.lower() == address), None)

    @property
    def non_zero(self):
        return [b for b in self.balances if not b.is_zero]

    @property
    def failed(self):
        return [b for b in self.balances if b.error]
