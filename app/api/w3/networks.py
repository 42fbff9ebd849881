import dataclasses
from typing import Dict, List, Optional

from api.w3.errors import UnsupportedNetwork
from lib.config import Config
from lib.constants import NetworkKeys, ChainIds, NATIVE_TOKEN_ADDRESS
from lib.logs import WithLogger
from lib.utils import strip_trailing_slash, unique_ordered
from models.network import NetworkDescriptor, NativeToken
from models.token import TokenDescriptor

ONE_INCH_ROUTER_V5 = '0x1111111254EEB25477B68fb85Ed929f73A960582'


def _tokens(network: str, native: NativeToken, *items):
    tokens = {
        native.symbol: TokenDescriptor(NATIVE_TOKEN_ADDRESS, native.symbol, native.name, native.decimals, network)
    }
    for address, symbol, name, decimals in items:
        tokens[symbol] = TokenDescriptor(address, symbol, name, decimals, network)
    return tokens


_ETH = NativeToken('ETH', 'Ethereum', 18)
_BNB = NativeToken('BNB', 'BNB', 18)

ETHEREUM = NetworkDescriptor(
    key=NetworkKeys.ETHEREUM,
    chain_id=ChainIds.ETHEREUM,
    name='Ethereum',
    primary_endpoint='https://eth.llamarpc.com',
    backup_endpoints=(
        'https://rpc.ankr.com/eth',
        'https://ethereum.publicnode.com',
        'https://eth-mainnet.g.alchemy.com/v2/demo',
        'https://cloudflare-eth.com',
    ),
    native_token=_ETH,
    known_tokens=_tokens(
        NetworkKeys.ETHEREUM, _ETH,
        ('0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48', 'USDC', 'USD Coin', 6),
        ('0xdAC17F958D2ee523a2206206994597C13D831ec7', 'USDT', 'Tether', 6),
        ('0x6B175474E89094C44Da98b954EedeAC495271d0F', 'DAI', 'Dai Stablecoin', 18),
        ('0x2260FAC5E5542a773Aa44fBCfeDf7C193bc2C599', 'WBTC', 'Wrapped Bitcoin', 8),
        ('0x1f9840a85d5aF5bf1D1762F925BDADdC4201F984', 'UNI', 'Uniswap', 18),
        ('0x514910771AF9Ca656af840dff83E8264EcF986CA', 'LINK', 'Chainlink', 18),
    ),
    router_address=ONE_INCH_ROUTER_V5,
    quoter_address='0x0D125c15D54cA1F8a813C74A81aEe34ebB508C1f',
    explorer_url='https://etherscan.io',
    multicall_address='0xeefBa1e63905eF1D7ACbA5a8513c70307C1cE441',
    average_block_time=13,
)

OPTIMISM = NetworkDescriptor(
    key=NetworkKeys.OPTIMISM,
    chain_id=ChainIds.OPTIMISM,
    name='Optimism',
    primary_endpoint='https://mainnet.optimism.io',
    backup_endpoints=(
        'https://optimism.publicnode.com',
        'https://rpc.ankr.com/optimism',
        'https://optimism-mainnet.public.blastapi.io',
        'https://optimism.llamarpc.com',
        'https://optimism.blockpi.network/v1/rpc/public',
        'https://optimism-rpc.publicnode.com',
        'https://optimism.drpc.org',
    ),
    native_token=_ETH,
    known_tokens=_tokens(
        NetworkKeys.OPTIMISM, _ETH,
        ('0x0b2C639c533813f4Aa9D7837CAf62653d097Ff85', 'USDC', 'USD Coin', 6),
        ('0x94b008aA00579c1307B0EF2c499aD98a8ce58e58', 'USDT', 'Tether', 6),
        ('0xDA10009cBd5D07dd0CeCc66161FC93D7c9000da1', 'DAI', 'Dai Stablecoin', 18),
        ('0x68f180fcCe6836688e9084f035309E29Bf0A2095', 'WBTC', 'Wrapped Bitcoin', 8),
        ('0x4200000000000000000000000000000000000042', 'OP', 'Optimism', 18),
    ),
    router_address=ONE_INCH_ROUTER_V5,
    quoter_address='0x4d47fd5a29904Dae0Ef51b1c450C9750F15D7856',
    explorer_url='https://optimistic.etherscan.io',
    multicall_address='0xD9bfE9979e9CA4b2fe84bA5d4Cf963bBcB376974',
    average_block_time=2,
)

ARBITRUM = NetworkDescriptor(
    key=NetworkKeys.ARBITRUM,
    chain_id=ChainIds.ARBITRUM,
    name='Arbitrum',
    primary_endpoint='https://arbitrum.llamarpc.com',
    backup_endpoints=(
        'https://rpc.ankr.com/arbitrum',
        'https://arbitrum-mainnet.public.blastapi.io',
        'https://arbitrum.publicnode.com',
        'https://arb1.arbitrum.io/rpc',
    ),
    native_token=_ETH,
    known_tokens=_tokens(
        NetworkKeys.ARBITRUM, _ETH,
        ('0xFF970A61A04b1cA14834A43f5dE4533eBDDB5CC8', 'USDC', 'USD Coin', 6),
        ('0xFd086bC7CD5C481DCC9C85ebE478A1C0b69FCbb9', 'USDT', 'Tether', 6),
        ('0xDA10009cBd5D07dd0CeCc66161FC93D7c9000da1', 'DAI', 'Dai Stablecoin', 18),
        ('0x2f2a2543B76A4166549F7aaB2e75Bef0aefC5B0f', 'WBTC', 'Wrapped Bitcoin', 8),
        ('0x912CE59144191C1204E64559FE8253a0e49E6548', 'ARB', 'Arbitrum', 18),
        ('0xFa7F8980b0f1E64A2062791cc3b0871572f1F7f0', 'UNI', 'Uniswap', 18),
    ),
    router_address=ONE_INCH_ROUTER_V5,
    quoter_address='0x4d47fd5a29904Dae0Ef51b1c450C9750F15D7856',
    explorer_url='https://arbiscan.io',
    multicall_address='0xadF885960B47eA2CD9B55E6DAc6B42b7Cb2806dB',
    average_block_time=1,
)

BSC = NetworkDescriptor(
    key=NetworkKeys.BSC,
    chain_id=ChainIds.BSC,
    name='BNB Smart Chain',
    primary_endpoint='https://bsc.llamarpc.com',
    backup_endpoints=(
        'https://rpc.ankr.com/bsc',
        'https://bsc-dataseed.binance.org',
        'https://bsc.publicnode.com',
        'https://bsc-dataseed1.defibit.io',
    ),
    native_token=_BNB,
    known_tokens=_tokens(
        NetworkKeys.BSC, _BNB,
        ('0x8AC76a51cc950d9822D68b83fE1Ad97B32Cd580d', 'USDC', 'USD Coin', 18),
        ('0x55d398326f99059fF775485246999027B3197955', 'USDT', 'Tether', 18),
        ('0x1AF3F329e8BE154074D8769D1FFa4eE058B1DBc3', 'DAI', 'Dai Stablecoin', 18),
        ('0xe9e7CEA3DedcA5984780Bafc599bD69ADd087D56', 'BUSD', 'Binance USD', 18),
        ('0x2170Ed0880ac9A755fd29B2688956BD959F933F8', 'WETH', 'Wrapped Ethereum', 18),
        ('0x0E09FaBB73Bd3Ade0a17ECC321fD13a19e81cE82', 'CAKE', 'PancakeSwap', 18),
    ),
    router_address=ONE_INCH_ROUTER_V5,
    quoter_address='0x4d47fd5a29904Dae0Ef51b1c450C9750F15D7856',
    explorer_url='https://bscscan.com',
    multicall_address='0xfF6FD90A470Aaa0c1B8A54681746b07AcdFedc9B',
    average_block_time=3,
)

DEFAULT_NETWORKS = (ETHEREUM, OPTIMISM, ARBITRUM, BSC)


class NetworkRegistry(WithLogger):
    """
    Static table of supported networks.
    The config may replace endpoints of a known network (web3.<key>.rpc / web3.<key>.backup_rpc),
    but it never adds new networks.
    """

    def __init__(self, cfg: Optional[Config] = None, networks=DEFAULT_NETWORKS):
        super().__init__()
        self._networks: Dict[str, NetworkDescriptor] = {}
        for network in networks:
            if cfg is not None:
                network = self._apply_overrides(cfg, network)
            self._networks[network.key] = network

    def _apply_overrides(self, cfg: Config, network: NetworkDescriptor) -> NetworkDescriptor:
        primary, backups = cfg.endpoint_overrides(network.key)
        if not primary and not backups:
            return network

        primary = strip_trailing_slash(primary) if primary else network.primary_endpoint
        backups = [strip_trailing_slash(b) for b in backups] if backups else list(network.backup_endpoints)
        backups = [b for b in unique_ordered(backups) if b != primary]
        self.logger.info(f'Custom endpoints for "{network.key}": {primary} + {len(backups)} backup(s).')
        return dataclasses.replace(network, primary_endpoint=primary, backup_endpoints=tuple(backups))

    def get(self, key: str) -> NetworkDescriptor:
        try:
            return self._networks[key]
        except KeyError:
            raise UnsupportedNetwork(f'Unknown network "{key}"')

    def __getitem__(self, key) -> NetworkDescriptor:
        return self.get(key)

    def __contains__(self, key):
        return key in self._networks

    def __iter__(self):
        return iter(self._networks.values())

    def __len__(self):
        return len(self._networks)

    @property
    def keys(self) -> List[str]:
        return list(self._networks.keys())

    def by_chain_id(self, chain_id: int) -> Optional[NetworkDescriptor]:
        return next((n for n in self._networks.values() if n.chain_id == int(chain_id)), None)

    @property
    def supported_chain_ids(self) -> List[int]:
        return [n.chain_id for n in self._networks.values()]

    def endpoints(self, key: str):
        return list(self.get(key).endpoints)

    def native_token(self, key: str) -> TokenDescriptor:
        network = self.get(key)
        native = network.native_token
        return TokenDescriptor(NATIVE_TOKEN_ADDRESS, native.symbol, native.name, native.decimals, network.key)
