import asyncio
from typing import Callable, Dict, List

from api.w3.erc20_contract import ERC20Contract
from api.w3.errors import NoContractAtAddress, InvalidTokenContract
from api.w3.networks import NetworkRegistry
from api.w3.web3_helper import Web3Helper, to_checksum
from lib.date_utils import now_ts
from lib.kv_store import KVStore
from lib.logs import WithLogger
from lib.money import format_units
from models.token import TokenDescriptor, ValidToken, InvalidToken, TokenValidation

DEFAULT_DECIMALS = 18


class StaticTokenList:
    """Known tokens of a network, indexed by lower-cased address."""

    def __init__(self, tokens: Dict[str, TokenDescriptor]):
        self.by_symbol = dict(tokens)
        self.tokens = {t.address.lower(): t for t in tokens.values()}

    def __len__(self):
        return len(self.tokens)

    def __getitem__(self, item) -> TokenDescriptor:
        return self.tokens[str(item).lower()]

    def __contains__(self, item):
        return str(item).lower() in self.tokens

    def get(self, address, default=None):
        return self.tokens.get(str(address).lower(), default)


class TokenRegistry(WithLogger):
    DB_KEY_CUSTOM_TOKENS = 'custom_tokens_{network}'

    def __init__(self, networks: NetworkRegistry, helper_factory: Callable[[str], Web3Helper], store: KVStore):
        super().__init__()
        self.networks = networks
        self.helper_factory = helper_factory
        self.store = store
        self._static = {n.key: StaticTokenList(n.known_tokens) for n in networks}

    def static_list(self, network_key: str) -> StaticTokenList:
        self.networks.get(network_key)
        return self._static[network_key]

    # ---- validation ----

    async def _probe(self, coro, default, what, address):
        try:
            return await coro
        except Exception as e:
            self.logger.debug(f'{what}() probe failed for {address}: {type(e).__name__}: {e}')
            return default

    async def validate(self, contract_address: str, network_key: str) -> TokenValidation:
        network = self.networks.get(network_key)
        address = to_checksum(contract_address)
        helper = self.helper_factory(network.key)

        code = await helper.get_code(address)
        if not code or code in ('0x', '0x0'):
            raise NoContractAtAddress(f'No contract deployed at {address} on "{network.key}"')

        contract = ERC20Contract(helper, address)
        symbol, name, decimals, total_supply = await asyncio.gather(
            self._probe(contract.symbol(), '', 'symbol', address),
            self._probe(contract.name(), '', 'name', address),
            self._probe(contract.decimals(), DEFAULT_DECIMALS, 'decimals', address),
            self._probe(contract.total_supply(), 0, 'totalSupply', address),
        )

        if not symbol and not name:
            self.logger.info(f'{address} on "{network.key}" does not look like an ERC-20 token.')
            return InvalidToken(address, 'Contract exposes neither symbol() nor name()')

        return ValidToken(
            address=address,
            symbol=symbol,
            name=name,
            decimals=decimals,
            total_supply_raw=total_supply,
            total_supply=format_units(total_supply, decimals),
        )

    # ---- custom tokens ----

    def _db_key(self, network_key):
        return self.DB_KEY_CUSTOM_TOKENS.format(network=network_key)

    def custom_tokens(self, network_key: str) -> List[TokenDescriptor]:
        self.networks.get(network_key)
        raw_items = self.store.get(self._db_key(network_key)) or []
        results = []
        for item in raw_items:
            try:
                results.append(TokenDescriptor.from_dict(item))
            except (KeyError, TypeError, ValueError) as e:
                self.logger.error(f'Skipping corrupt custom token entry {item!r}: {e}')
        return results

    def _save_custom_tokens(self, network_key: str, tokens: List[TokenDescriptor]):
        self.store.set(self._db_key(network_key), [t.to_dict() for t in tokens])

    async def add_custom_token(self, contract_address: str, network_key: str) -> TokenDescriptor:
        validation = await self.validate(contract_address, network_key)
        if not validation.is_valid:
            raise InvalidTokenContract(f'{validation.address}: {validation.reason}')

        token = validation.to_descriptor(network_key, added_at=now_ts())
        tokens = [t for t in self.custom_tokens(network_key) if not t.same_address(token.address)]
        tokens.append(token)
        self._save_custom_tokens(network_key, tokens)
        self.logger.info(f'Custom token {token.symbol} ({token.address}) saved for "{network_key}".')
        return token

    def remove_custom_token(self, contract_address: str, network_key: str) -> bool:
        tokens = self.custom_tokens(network_key)
        remaining = [t for t in tokens if not t.same_address(contract_address)]
        if len(remaining) == len(tokens):
            return False
        self._save_custom_tokens(network_key, remaining)
        self.logger.info(f'Custom token {contract_address} removed from "{network_key}".')
        return True

    def all_tokens(self, network_key: str) -> Dict[str, TokenDescriptor]:
        """
        Static tokens overlaid with the custom ones, keyed by symbol.
        The native coin is always present under its own symbol.
        """
        static = self.static_list(network_key)
        native = self.networks.native_token(network_key)

        result = {native.symbol: native}
        for symbol, token in static.by_symbol.items():
            if not token.is_native:
                result[symbol] = token

        for token in self.custom_tokens(network_key):
            key = token.symbol
            if key == native.symbol or not key:
                key = token.address
            result[key] = token
        return result
