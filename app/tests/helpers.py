from typing import Dict, Optional

from aiohttp import ClientConnectionError
from eth_abi import encode as abi_encode, decode as abi_decode
from eth_utils import keccak

from api.oneinch.connector import OneInchConnector
from api.w3.endpoint_pool import EndpointPool
from api.w3.erc20_contract import ERC20Contract
from api.w3.errors import RpcError
from api.w3.gateway import ChainGateway
from api.w3.networks import NetworkRegistry, DEFAULT_NETWORKS
from lib.config import Config
from lib.kv_store import MemoryKVStore

HARDHAT_MNEMONIC = 'test test test test test test test test test test test junk'
HARDHAT_PRIVATE_KEY = '0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80'
HARDHAT_ADDRESS = '0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266'

OTHER_ADDRESS = '0x70997970C51812dc3A010C7d01b50e0d17dc79C8'

USDC_ETH = '0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48'
USDT_ETH = '0xdAC17F958D2ee523a2206206994597C13D831ec7'
CUSTOM_TOKEN = '0x5A98FcBEA516Cf06857215779Fd812CA3beF1B32'
LEGACY_TOKEN = '0x9f8F72aA9304c8B593d555F12eF6589cC3A579A2'
EMPTY_CONTRACT = '0x1111111111111111111111111111111111111111'


def make_config(**overrides) -> Config:
    data = {
        'rpc': {
            'retry_delay': 0,
            'connect_retries': 2,
            'connect_retry_delay': 0,
        },
        'wallet': {
            'default_network': 'ethereum',
            'strict_chain_id': False,
        },
        'history': {
            'max_depth': 1000,
            'max_blocks': 100,
        },
        'aggregator': {
            'quote_ttl': 30,
            'receipt_timeout': 5,
            'receipt_poll_interval': 0,
        },
    }
    for path, value in overrides.items():
        section, key = path.split('__')
        data.setdefault(section, {})[key] = value
    return Config(data=data)


class FakeToken:
    def __init__(self, symbol='TKN', name='Token', decimals=18, total_supply=10 ** 24, legacy_text=False,
                 reverts=()):
        self.symbol = symbol
        self.name = name
        self.decimals = decimals
        self.total_supply = total_supply
        self.legacy_text = legacy_text
        self.reverts = set(reverts)
        self.balances: Dict[str, int] = {}
        self.allowances: Dict[tuple, int] = {}


class FakeChain:
    """In-memory EVM node answering the JSON-RPC methods used by the gateway."""

    def __init__(self, chain_id=1, tip=5000):
        self.chain_id = chain_id
        self.tip = tip
        self.balances: Dict[str, int] = {}
        self.codes: Dict[str, str] = {}
        self.tokens: Dict[str, FakeToken] = {}
        self.blocks: Dict[int, dict] = {}
        self.broken_blocks = set()
        self.receipts: Dict[str, dict] = {}
        self.sent_raw = []
        self.calls = []
        self.nonce = 0
        self.fail_next_tx_status = False
        self._selectors = {fn.selector: fn for fn in ERC20Contract.functions().values()}

    def add_token(self, address: str, token: FakeToken):
        self.tokens[address.lower()] = token
        self.codes[address.lower()] = '0x6080604052'
        return token

    def add_block(self, number: int, timestamp: int, txs=()):
        self.blocks[number] = {
            'number': hex(number),
            'timestamp': hex(timestamp),
            'transactions': list(txs),
        }
        for tx in txs:
            self.receipts.setdefault(tx['hash'], {'status': '0x1', 'gasUsed': hex(21000)})

    def method_count(self, method):
        return sum(1 for m, _ in self.calls if m == method)

    def _erc20_call(self, to: str, data: str):
        token = self.tokens.get(to.lower())
        if token is None:
            return '0x'

        raw = bytes.fromhex(data[2:])
        fn = self._selectors.get(raw[:4])
        if fn is None or fn.name in token.reverts:
            raise RpcError('execution reverted', 3)

        args = abi_decode(fn.input_types, raw[4:]) if fn.input_types else ()
        if fn.name in ('symbol', 'name'):
            text = getattr(token, fn.name)
            if token.legacy_text:
                return '0x' + abi_encode(['bytes32'], [text.encode()]).hex()
            value = text
        elif fn.name == 'decimals':
            value = token.decimals
        elif fn.name == 'totalSupply':
            value = token.total_supply
        elif fn.name == 'balanceOf':
            value = token.balances.get(args[0].lower(), 0)
        elif fn.name == 'allowance':
            value = token.allowances.get((args[0].lower(), args[1].lower()), 0)
        else:
            raise RpcError('execution reverted', 3)
        return '0x' + abi_encode(fn.output_types, [value]).hex()

    def handle(self, method: str, params: list):
        self.calls.append((method, params))
        if method == 'eth_chainId':
            return hex(self.chain_id)
        if method == 'eth_blockNumber':
            return hex(self.tip)
        if method == 'eth_getBalance':
            return hex(self.balances.get(params[0].lower(), 0))
        if method == 'eth_getCode':
            return self.codes.get(params[0].lower(), '0x')
        if method == 'eth_call':
            tx = params[0]
            return self._erc20_call(tx['to'], tx['data'])
        if method == 'eth_getBlockByNumber':
            number = int(params[0], 16)
            if number in self.broken_blocks:
                raise ConnectionError(f'block {number} is broken')
            return self.blocks.get(number, {'number': params[0], 'timestamp': '0x0', 'transactions': []})
        if method == 'eth_getTransactionReceipt':
            return self.receipts.get(params[0])
        if method == 'eth_getTransactionCount':
            return hex(self.nonce)
        if method == 'eth_gasPrice':
            return hex(10 ** 9)
        if method == 'eth_estimateGas':
            return hex(60000)
        if method == 'eth_sendRawTransaction':
            raw_tx = params[0]
            tx_hash = '0x' + keccak(hexstr=raw_tx).hex()
            self.sent_raw.append(raw_tx)
            self.nonce += 1
            status = '0x0' if self.fail_next_tx_status else '0x1'
            self.fail_next_tx_status = False
            self.receipts[tx_hash] = {'status': status, 'gasUsed': hex(50000)}
            return tx_hash
        raise RpcError(f'method {method} not supported', -32601)


class FakeRpcClient:
    def __init__(self, chain: Optional[FakeChain], url: str, fail=False):
        self.chain = chain
        self.url = url
        self.fail = fail
        self.attempts = 0

    async def request(self, method, params=None):
        self.attempts += 1
        if self.fail:
            raise ClientConnectionError(f'{self.url} is down')
        return self.chain.handle(method, list(params or []))

    def __repr__(self):
        return f'FakeRpcClient({self.url!r})'


class FakeEndpointPool(EndpointPool):
    def __init__(self, network_key, chain: Optional[FakeChain], urls=('http://node-1',), failing=()):
        self.chain = chain
        self.failing = set(failing)
        super().__init__(network_key, list(urls), session=None, retry_delay=0)

    def _make_client(self, url):
        return FakeRpcClient(self.chain, url, fail=url in self.failing)


class FakeOneInchConnector(OneInchConnector):
    def __init__(self, to_amount=2_000_000, fail_quote=False, fail_swap=False):
        super().__init__(session=None, base_url='https://aggregator.test')
        self.to_amount = to_amount
        self.fail_quote = fail_quote
        self.fail_swap = fail_swap
        self.requests = []

    async def _get(self, url: str, params: dict):
        self.requests.append((url, dict(params)))
        if url.endswith('/quote'):
            if self.fail_quote:
                raise ConnectionError('HTTP 400: insufficient liquidity')
            return {
                'toAmount': str(self.to_amount),
                'gas': 150000,
                'protocols': [[[{'name': 'UNISWAP_V3', 'part': 100}]]],
            }
        if self.fail_swap:
            raise ConnectionError('HTTP 500: internal error')
        return {
            'toAmount': str(self.to_amount),
            'tx': {
                'to': '0x1111111254EEB25477B68fb85Ed929f73A960582',
                'data': '0x12aa3caf',
                'value': params['amount'] if params['src'].lower().startswith('0xeeee') else '0',
                'gas': 250000,
                'gasPrice': '1000000000',
            },
        }

    def paths(self):
        return [url.rsplit('/', 1)[-1] for url, _ in self.requests]


class GatewayFixture:
    def __init__(self, cfg=None, failing_networks=(), connector=None, extra_networks=()):
        self.cfg = cfg or make_config()
        self.networks = NetworkRegistry(self.cfg, networks=DEFAULT_NETWORKS + tuple(extra_networks))
        self.chains = {n.key: FakeChain(n.chain_id) for n in self.networks}
        self.store = MemoryKVStore()
        self.connector = connector or FakeOneInchConnector()
        self.failing_networks = set(failing_networks)
        self.gateway = ChainGateway(
            self.cfg,
            store=self.store,
            networks=self.networks,
            pool_factory=self._make_pool,
            connector=self.connector,
        )

    def _make_pool(self, network):
        urls = list(network.endpoints)
        failing = urls if network.key in self.failing_networks else ()
        return FakeEndpointPool(network.key, self.chains[network.key], urls=urls, failing=failing)

    @property
    def eth(self) -> FakeChain:
        return self.chains['ethereum']

    def total_calls(self):
        return sum(len(c.calls) for c in self.chains.values())
