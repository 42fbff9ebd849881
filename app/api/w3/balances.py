import asyncio
from typing import Callable

from api.w3.erc20_contract import ERC20Contract
from api.w3.networks import NetworkRegistry
from api.w3.token_list import TokenRegistry
from api.w3.web3_helper import Web3Helper, to_checksum
from lib.constants import NATIVE_TOKEN_ADDRESS
from lib.logs import WithLogger
from lib.money import format_units
from models.token import TokenBalance, BalanceSnapshot, TokenDescriptor


class BalanceAggregator(WithLogger):
    def __init__(self, networks: NetworkRegistry, tokens: TokenRegistry, helper_factory: Callable[[str], Web3Helper]):
        super().__init__()
        self.networks = networks
        self.tokens = tokens
        self.helper_factory = helper_factory

    async def native_balance(self, address: str, network_key: str) -> TokenBalance:
        native = self.networks.native_token(network_key)
        address = to_checksum(address)
        raw = await self.helper_factory(network_key).get_balance(address)
        return TokenBalance(
            token_address=NATIVE_TOKEN_ADDRESS,
            symbol=native.symbol,
            name=native.name,
            raw_balance=raw,
            decimals=native.decimals,
            formatted_balance=format_units(raw, native.decimals),
        )

    async def token_balance(self, token_address: str, wallet_address: str, network_key: str) -> TokenBalance:
        if token_address.lower() == NATIVE_TOKEN_ADDRESS:
            return await self.native_balance(wallet_address, network_key)

        known = self.tokens.static_list(network_key).get(token_address)
        contract = ERC20Contract(self.helper_factory(network_key), token_address)
        raw, decimals = await asyncio.gather(
            contract.balance_of(wallet_address),
            contract.decimals(),
        )
        return TokenBalance(
            token_address=contract.address,
            symbol=known.symbol if known else '',
            name=known.name if known else '',
            raw_balance=raw,
            decimals=decimals,
            formatted_balance=format_units(raw, decimals),
        )

    async def _balance_of_token(self, token: TokenDescriptor, wallet_address: str, network_key: str):
        try:
            if token.is_native:
                balance = await self.native_balance(wallet_address, network_key)
            else:
                contract = ERC20Contract(self.helper_factory(network_key), token.address)
                raw = await contract.balance_of(wallet_address)
                balance = TokenBalance(
                    token_address=contract.address,
                    symbol=token.symbol,
                    name=token.name,
                    raw_balance=raw,
                    decimals=token.decimals,
                    formatted_balance=format_units(raw, token.decimals),
                )
            return balance
        except Exception as e:
            self.logger.warning(f'Balance of {token.symbol} ({token.address}) failed: {type(e).__name__}: {e}')
            return TokenBalance(
                token_address=token.address,
                symbol=token.symbol,
                name=token.name,
                raw_balance=0,
                decimals=token.decimals,
                formatted_balance=format_units(0, token.decimals),
                error=str(e) or type(e).__name__,
            )

    async def all_balances(self, wallet_address: str, network_key: str) -> BalanceSnapshot:
        wallet_address = to_checksum(wallet_address)
        tokens = list(self.tokens.all_tokens(network_key).values())
        balances = await asyncio.gather(*[
            self._balance_of_token(token, wallet_address, network_key) for token in tokens
        ])
        return BalanceSnapshot(wallet_address, network_key, list(balances))
