import pytest

from api.w3.errors import UnsupportedNetwork
from api.w3.networks import NetworkRegistry
from lib.config import Config
from lib.constants import NATIVE_TOKEN_ADDRESS


def test_static_table():
    reg = NetworkRegistry()
    assert set(reg.keys) == {'ethereum', 'optimism', 'arbitrum', 'bsc'}
    assert reg.get('bsc').native_token.symbol == 'BNB'
    assert reg.get('ethereum').endpoints[0] == 'https://eth.llamarpc.com'
    assert len(reg.get('ethereum').endpoints) == 5

    for network in reg:
        native = network.known_tokens[network.native_token.symbol]
        assert native.address == NATIVE_TOKEN_ADDRESS


def test_lookup():
    reg = NetworkRegistry()
    assert reg.by_chain_id(42161).key == 'arbitrum'
    assert reg.by_chain_id(137) is None
    assert sorted(reg.supported_chain_ids) == [1, 10, 56, 42161]

    with pytest.raises(UnsupportedNetwork):
        reg.get('polygon')


def test_endpoint_overrides():
    cfg = Config(data={
        'web3': {
            'ethereum': {
                'rpc': 'https://my-node.example/',
                'backup_rpc': ['https://b1.example', 'https://b1.example', 'https://my-node.example'],
            },
            'polygon': {
                'rpc': 'https://polygon.example',
            },
        }
    })
    reg = NetworkRegistry(cfg)
    eth = reg.get('ethereum')
    assert eth.endpoints == ('https://my-node.example', 'https://b1.example')

    # the config cannot add networks
    assert 'polygon' not in reg

    # untouched networks keep their defaults
    assert reg.get('optimism').primary_endpoint == 'https://mainnet.optimism.io'


def test_explorer_urls():
    reg = NetworkRegistry()
    assert reg.get('ethereum').explorer_tx_url('0xabc') == 'https://etherscan.io/tx/0xabc'
    assert reg.get('bsc').explorer_address_url('0x1') == 'https://bscscan.com/address/0x1'
