from typing import Callable, Dict, List, Optional

from aiohttp import ClientSession

from api.oneinch.connector import OneInchConnector
from api.w3.aggregator import SwapBroker, amount_to_raw
from api.w3.balances import BalanceAggregator
from api.w3.endpoint_pool import EndpointPool
from api.w3.erc20_contract import ERC20Contract
from api.w3.errors import InvalidInput
from api.w3.history import TransactionHistoryScanner, DEFAULT_LIMIT
from api.w3.networks import NetworkRegistry
from api.w3.token_list import TokenRegistry
from api.w3.wallet_session import WalletSession
from api.w3.web3_helper import Web3Helper, to_checksum
from lib.config import Config
from lib.constants import DEFAULT_DERIVATION_PATH
from lib.kv_store import KVStore, MemoryKVStore
from lib.logs import WithLogger
from models.network import NetworkDescriptor
from models.swap import SwapQuote, SwapResult
from models.token import TokenDescriptor, TokenValidation, TokenBalance, BalanceSnapshot
from models.tx import TransactionRecord
from models.wallet import ConnectResult, WalletInfo


class ChainGateway(WithLogger):
    """
    Entry point for wallet operations.
    Keeps one endpoint pool per network and the currently active network.
    Every operation accepts an optional network key and falls back to the active one.
    """

    def __init__(self, cfg: Config, session: Optional[ClientSession] = None, store: Optional[KVStore] = None,
                 networks: Optional[NetworkRegistry] = None,
                 pool_factory: Optional[Callable[[NetworkDescriptor], EndpointPool]] = None,
                 connector: Optional[OneInchConnector] = None):
        super().__init__()
        self.cfg = cfg
        self.session = session
        self.networks = networks or NetworkRegistry(cfg)
        self.store = store if store is not None else MemoryKVStore()
        self._pool_factory = pool_factory or (lambda network: EndpointPool.from_config(cfg, network, session))
        self._helpers: Dict[str, Web3Helper] = {}

        self._active_network = self.networks.get(cfg.default_network).key

        self.wallet = WalletSession(cfg, self.networks, self.helper)
        self.tokens = TokenRegistry(self.networks, self.helper, self.store)
        self.balances = BalanceAggregator(self.networks, self.tokens, self.helper)
        self.scanner = TransactionHistoryScanner(cfg, self.networks, self.helper)
        self.connector = connector or OneInchConnector.from_config(cfg, session)
        self.swaps = SwapBroker(cfg, self.networks, self.wallet, self.helper, self.connector)

    # ---- plumbing ----

    def helper(self, network_key: str) -> Web3Helper:
        helper = self._helpers.get(network_key)
        if helper is None:
            network = self.networks.get(network_key)
            helper = Web3Helper(self._pool_factory(network))
            self._helpers[network_key] = helper
        return helper

    def pool(self, network_key: Optional[str] = None) -> EndpointPool:
        return self.helper(self._net(network_key)).pool

    async def call(self, method: str, params=None, network_key: Optional[str] = None):
        return await self.pool(network_key).call(method, params)

    def _net(self, network_key: Optional[str]) -> str:
        return self.networks.get(network_key or self._active_network).key

    @property
    def active_network(self) -> NetworkDescriptor:
        return self.networks.get(self._active_network)

    # ---- networks ----

    def available_networks(self) -> List[NetworkDescriptor]:
        return list(self.networks)

    def network_by_chain_id(self, chain_id: int) -> Optional[NetworkDescriptor]:
        return self.networks.by_chain_id(chain_id)

    def supported_chain_ids(self) -> List[int]:
        return self.networks.supported_chain_ids

    def native_token(self, network_key: Optional[str] = None) -> TokenDescriptor:
        return self.networks.native_token(self._net(network_key))

    def explorer_url(self, tx_hash: str, network_key: Optional[str] = None) -> str:
        return self.networks.get(self._net(network_key)).explorer_tx_url(tx_hash)

    async def select_network(self, network_key: str) -> Optional[ConnectResult]:
        network = self.networks.get(network_key)
        result = None
        if self.wallet.is_connected:
            result = await self.wallet.switch_network(network.key)
        self._active_network = network.key
        return result

    # ---- wallet ----

    async def connect_with_mnemonic(self, phrase: str, network_key: Optional[str] = None,
                                    derivation_path=DEFAULT_DERIVATION_PATH) -> ConnectResult:
        result = await self.wallet.connect_with_mnemonic(phrase, self._net(network_key), derivation_path)
        self._active_network = result.network
        return result

    async def connect_with_private_key(self, private_key: str, network_key: Optional[str] = None) -> ConnectResult:
        result = await self.wallet.connect_with_private_key(private_key, self._net(network_key))
        self._active_network = result.network
        return result

    async def switch_network(self, network_key: str) -> ConnectResult:
        result = await self.wallet.switch_network(network_key)
        self._active_network = result.network
        return result

    def disconnect(self):
        self.wallet.disconnect()

    def can_sign(self) -> bool:
        return self.wallet.can_sign()

    def wallet_info(self) -> Optional[WalletInfo]:
        return self.wallet.wallet_info()

    @property
    def address(self) -> Optional[str]:
        return self.wallet.address

    def _wallet_address(self, address: Optional[str]) -> str:
        address = address or self.wallet.address
        if not address:
            raise InvalidInput('No address given and no wallet connected')
        return address

    # ---- tokens ----

    async def validate_token(self, address: str, network_key: Optional[str] = None) -> TokenValidation:
        return await self.tokens.validate(address, self._net(network_key))

    async def add_custom_token(self, address: str, network_key: Optional[str] = None) -> TokenDescriptor:
        return await self.tokens.add_custom_token(address, self._net(network_key))

    def remove_custom_token(self, address: str, network_key: Optional[str] = None) -> bool:
        return self.tokens.remove_custom_token(address, self._net(network_key))

    def custom_tokens(self, network_key: Optional[str] = None) -> List[TokenDescriptor]:
        return self.tokens.custom_tokens(self._net(network_key))

    def all_tokens(self, network_key: Optional[str] = None) -> Dict[str, TokenDescriptor]:
        return self.tokens.all_tokens(self._net(network_key))

    # ---- balances & history ----

    async def native_balance(self, address: Optional[str] = None, network_key: Optional[str] = None) -> TokenBalance:
        return await self.balances.native_balance(self._wallet_address(address), self._net(network_key))

    async def token_balance(self, token_address: str, address: Optional[str] = None,
                            network_key: Optional[str] = None) -> TokenBalance:
        return await self.balances.token_balance(token_address, self._wallet_address(address),
                                                 self._net(network_key))

    async def all_balances(self, address: Optional[str] = None,
                           network_key: Optional[str] = None) -> BalanceSnapshot:
        return await self.balances.all_balances(self._wallet_address(address), self._net(network_key))

    async def history(self, address: Optional[str] = None, network_key: Optional[str] = None,
                      limit=DEFAULT_LIMIT) -> List[TransactionRecord]:
        return await self.scanner.history(self._wallet_address(address), self._net(network_key), limit)

    # ---- swaps ----

    async def swap_quote(self, from_token: str, to_token: str, amount, decimals: int,
                         network_key: Optional[str] = None) -> SwapQuote:
        return await self.swaps.quote(from_token, to_token, amount, decimals, self._net(network_key))

    async def execute_swap(self, from_token: str, to_token: str, amount, decimals: int, slippage=1.0,
                           network_key: Optional[str] = None, quote: Optional[SwapQuote] = None) -> SwapResult:
        return await self.swaps.execute(from_token, to_token, amount, decimals, slippage,
                                        self._net(network_key), quote)

    # ---- transfers ----

    async def send_native(self, to: str, amount) -> str:
        signer = self.wallet.require_signer()
        native = signer.network.native_token
        value = amount_to_raw(amount, native.decimals)
        self.logger.info(f'Sending {amount} {native.symbol} to {to} on "{signer.network.key}".')
        return await signer.send_transaction(to=to_checksum(to), value=value)

    async def send_token(self, token_address: str, to: str, amount, decimals: Optional[int] = None) -> str:
        signer = self.wallet.require_signer()
        token = ERC20Contract(signer.helper, token_address)
        if decimals is None:
            decimals = await token.decimals()
        value = amount_to_raw(amount, decimals)
        self.logger.info(f'Sending {amount} of {token.address} to {to} on "{signer.network.key}".')
        return await signer.send_transaction(to=token.address, data=ERC20Contract.encode_transfer(to, value))

    async def send_transaction(self, tx: dict) -> str:
        signer = self.wallet.require_signer()
        return await signer.send_transaction(
            to=tx.get('to'),
            data=tx.get('data', '0x'),
            value=int(tx.get('value') or 0),
            gas=tx.get('gas'),
            gas_price=tx.get('gasPrice'),
            nonce=tx.get('nonce'),
        )

    async def estimate_gas(self, tx: dict, network_key: Optional[str] = None) -> int:
        if self.wallet.can_sign():
            return await self.wallet.require_signer().estimate_gas(tx)
        return await self.helper(self._net(network_key)).estimate_gas(tx)
