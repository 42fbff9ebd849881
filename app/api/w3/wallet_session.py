import re
from typing import Callable, Optional

from eth_account import Account
from eth_keys import constants as eth_constants
from mnemonic import Mnemonic

from api.w3.errors import (
    InvalidMnemonic, InvalidPrivateKey, NoWalletConnected, ConnectionFailed, ChainIdMismatch, InvalidInput,
    WalletGatewayError,
)
from api.w3.networks import NetworkRegistry
from api.w3.signer import KeyMaterial, Signer
from api.w3.web3_helper import Web3Helper
from lib.config import Config
from lib.constants import DEFAULT_DERIVATION_PATH
from lib.logs import WithLogger
from lib.utils import RetryPolicy
from models.network import NetworkDescriptor
from models.wallet import WalletInfo, WalletKind, ConnectResult

# eth-account keeps HD wallet derivation behind this switch
Account.enable_unaudited_hdwallet_features()

MNEMONIC_GEN = Mnemonic('english')
MNEMONIC_WORD_COUNTS = (12, 24)

PRIVATE_KEY_RE = re.compile(r'^(0x)?[0-9a-fA-F]{64}$')
SECP256K1_N = eth_constants.SECPK1_N


def normalize_mnemonic(phrase: str) -> str:
    return ' '.join(str(phrase or '').strip().lower().split())


def key_material_from_mnemonic(phrase: str, derivation_path=DEFAULT_DERIVATION_PATH) -> KeyMaterial:
    phrase = normalize_mnemonic(phrase)
    words = phrase.split(' ') if phrase else []
    if len(words) not in MNEMONIC_WORD_COUNTS:
        raise InvalidMnemonic(f'Mnemonic must have 12 or 24 words, got {len(words)}')
    if not MNEMONIC_GEN.check(phrase):
        raise InvalidMnemonic('Mnemonic checksum is invalid')

    account = Account.from_mnemonic(phrase, account_path=derivation_path)
    return KeyMaterial(bytes(account.key), WalletKind.MNEMONIC, derivation_path)


def key_material_from_private_key(private_key: str) -> KeyMaterial:
    private_key = str(private_key or '').strip()
    if not PRIVATE_KEY_RE.match(private_key):
        raise InvalidPrivateKey('Private key must be 64 hex digits, optionally prefixed with 0x')

    if private_key.startswith('0x'):
        private_key = private_key[2:]
    key_bytes = bytes.fromhex(private_key)
    if not 0 < int.from_bytes(key_bytes, 'big') < SECP256K1_N:
        raise InvalidPrivateKey('Private key is outside of the secp256k1 range')

    return KeyMaterial(key_bytes, WalletKind.PRIVATE_KEY)


class WalletSession(WithLogger):
    """
    Exactly one active wallet.
    States: Disconnected (no key material) and Connected (key material + signer bound to a network).
    """

    def __init__(self, cfg: Config, networks: NetworkRegistry, helper_factory: Callable[[str], Web3Helper]):
        super().__init__()
        self.cfg = cfg
        self.networks = networks
        self.helper_factory = helper_factory
        self.strict_chain_id = cfg.as_bool('wallet.strict_chain_id', False)
        self.retry = RetryPolicy(
            max_attempts=cfg.as_int('rpc.connect_retries', 3),
            delay=cfg.as_interval('rpc.connect_retry_delay', '1s'),
            give_up_on=(InvalidInput,),
            logger=self.logger,
        )

        self._key_material: Optional[KeyMaterial] = None
        self._signer: Optional[Signer] = None
        self._network: Optional[NetworkDescriptor] = None
        self._observed_chain_id = 0

    # ---- state ----

    @property
    def is_connected(self):
        return self._key_material is not None

    def can_sign(self) -> bool:
        return self._key_material is not None and self._signer is not None

    @property
    def address(self) -> Optional[str]:
        return self._key_material.address if self._key_material else None

    @property
    def network(self) -> Optional[NetworkDescriptor]:
        return self._network

    @property
    def signer(self) -> Optional[Signer]:
        return self._signer

    def require_signer(self) -> Signer:
        if not self.can_sign():
            raise NoWalletConnected('Connect a wallet first')
        return self._signer

    def wallet_info(self) -> Optional[WalletInfo]:
        if not self.is_connected:
            return None
        km = self._key_material
        return WalletInfo(
            address=km.address,
            kind=km.kind,
            derivation_path=km.derivation_path,
            public_key=km.public_key,
            network=self._network.key,
            chain_id=self._network.chain_id,
        )

    # ---- transitions ----

    async def connect_with_mnemonic(self, phrase: str, network_key: str,
                                    derivation_path=DEFAULT_DERIVATION_PATH) -> ConnectResult:
        self.disconnect()
        key_material = key_material_from_mnemonic(phrase, derivation_path)
        return await self._connect(key_material, network_key)

    async def connect_with_private_key(self, private_key: str, network_key: str) -> ConnectResult:
        self.disconnect()
        key_material = key_material_from_private_key(private_key)
        return await self._connect(key_material, network_key)

    async def _connect(self, key_material: KeyMaterial, network_key: str) -> ConnectResult:
        try:
            network = self.networks.get(network_key)
            signer, observed = await self._bind(key_material, network)
        except WalletGatewayError:
            key_material.wipe()
            raise

        self._key_material = key_material
        self._network = network
        self._signer = signer
        self._observed_chain_id = observed
        self.logger.info(f'Wallet {key_material.address} ({key_material.kind}) connected to "{network.key}".')
        return self._result()

    async def switch_network(self, network_key: str) -> ConnectResult:
        if not self.is_connected:
            raise NoWalletConnected('Cannot switch network without a wallet')

        network = self.networks.get(network_key)
        # the old binding survives a failed handshake
        signer, observed = await self._bind(self._key_material, network)

        if self._signer is not None:
            self._signer.revoke()
        self._network = network
        self._signer = signer
        self._observed_chain_id = observed
        self.logger.info(f'Wallet {self.address} switched to "{network.key}".')
        return self._result()

    def disconnect(self):
        if self._key_material is not None:
            self.logger.info(f'Wallet {self._key_material.address} disconnected.')
            self._key_material.wipe()
        if self._signer is not None:
            self._signer.revoke()
        self._key_material = None
        self._signer = None
        self._network = None
        self._observed_chain_id = 0

    async def _bind(self, key_material: KeyMaterial, network: NetworkDescriptor):
        helper = self.helper_factory(network.key)
        try:
            observed = await helper.handshake(self.retry)
        except WalletGatewayError as e:
            raise ConnectionFailed(f'Handshake with "{network.key}" failed: {e}') from e

        if observed != network.chain_id:
            if self.strict_chain_id:
                raise ChainIdMismatch(network.chain_id, observed, network.key)
            self.logger.warning(
                f'Chain id mismatch on "{network.key}": expected {network.chain_id}, endpoint reports {observed}.'
            )

        return Signer(key_material, network, helper), observed

    def _result(self) -> ConnectResult:
        return ConnectResult(
            address=self._key_material.address,
            network=self._network.key,
            chain_id=self._observed_chain_id,
            expected_chain_id=self._network.chain_id,
            can_sign=self.can_sign(),
        )
