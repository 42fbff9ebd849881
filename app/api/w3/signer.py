from typing import Optional

from eth_account import Account
from eth_keys import keys

from api.w3.errors import NoWalletConnected
from api.w3.web3_helper import Web3Helper, to_checksum
from lib.logs import WithLogger
from models.network import NetworkDescriptor


class KeyMaterial:
    """
    Holds the private key of the active wallet in a mutable buffer,
    so that it can be overwritten with zeros on disconnect.
    """

    def __init__(self, private_key: bytes, kind: str, derivation_path=''):
        self._key = bytearray(private_key)
        self.kind = kind
        self.derivation_path = derivation_path
        self._wiped = False
        self.address = Account.from_key(bytes(self._key)).address

    @property
    def is_wiped(self):
        return self._wiped

    @property
    def public_key(self) -> str:
        self._ensure_alive()
        return keys.PrivateKey(bytes(self._key)).public_key.to_hex()

    def _ensure_alive(self):
        if self._wiped:
            raise NoWalletConnected('Key material was discarded')

    def secret(self) -> bytes:
        self._ensure_alive()
        return bytes(self._key)

    def wipe(self):
        for i in range(len(self._key)):
            self._key[i] = 0
        self._key = bytearray()
        self._wiped = True

    def __repr__(self):
        # never print the key itself
        return f'KeyMaterial({self.kind}, {self.address}, wiped={self._wiped})'


class Signer(WithLogger):
    """Signs and broadcasts transactions for one account on one network."""

    @property
    def logger_prefix(self):
        return f'[{self.network.key}] '

    def __init__(self, key_material: KeyMaterial, network: NetworkDescriptor, helper: Web3Helper):
        self.network = network
        super().__init__()
        self._key_material = key_material
        self.helper = helper
        self._revoked = False

    @property
    def address(self) -> str:
        return self._key_material.address

    @property
    def is_usable(self):
        return not self._revoked and not self._key_material.is_wiped

    def revoke(self):
        """The session revokes the old signer when it rebinds. A revoked signer never signs again."""
        self._revoked = True

    def _ensure_usable(self):
        if not self.is_usable:
            raise NoWalletConnected(f'Signer for "{self.network.key}" is no longer valid')

    async def fill_transaction(self, tx: dict) -> dict:
        tx = dict(tx)
        tx['from'] = self.address
        if tx.get('to'):
            tx['to'] = to_checksum(tx['to'])
        tx['value'] = int(tx.get('value') or 0)
        tx.setdefault('data', '0x')
        if tx.get('nonce') is None:
            tx['nonce'] = await self.helper.get_transaction_count(self.address, 'pending')
        if not tx.get('gasPrice'):
            tx['gasPrice'] = await self.helper.gas_price()
        if not tx.get('gas'):
            tx['gas'] = await self.estimate_gas(tx)
        tx['chainId'] = self.network.chain_id
        return tx

    async def estimate_gas(self, tx: dict) -> int:
        tx = dict(tx)
        tx.setdefault('from', self.address)
        for key in ('gas', 'nonce', 'chainId'):
            tx.pop(key, None)
        return await self.helper.estimate_gas(tx)

    def sign_transaction(self, tx: dict) -> str:
        self._ensure_usable()
        tx = {k: v for k, v in tx.items() if k != 'from' and v is not None}
        signed = Account.sign_transaction(tx, self._key_material.secret())
        return '0x' + bytes(signed.raw_transaction).hex()

    async def send_transaction(self, to: Optional[str], data='0x', value=0, gas=None, gas_price=None,
                               nonce=None) -> str:
        self._ensure_usable()

        tx = await self.fill_transaction({
            'to': to,
            'data': data or '0x',
            'value': value,
            'gas': gas,
            'gasPrice': gas_price,
            'nonce': nonce,
        })
        raw_tx = self.sign_transaction(tx)
        tx_hash = await self.helper.send_raw_transaction(raw_tx)
        self.logger.info(f'Broadcast tx {tx_hash} (nonce={tx["nonce"]}, gas={tx["gas"]}).')
        return tx_hash

    async def wait_for_receipt(self, tx_hash: str, timeout=120.0, poll_interval=2.0) -> dict:
        return await self.helper.wait_for_receipt(tx_hash, timeout, poll_interval)

    def __repr__(self):
        return f'Signer({self.address} @ {self.network.key})'
