from dataclasses import dataclass


class WalletKind:
    MNEMONIC = 'mnemonic'
    PRIVATE_KEY = 'private_key'


@dataclass(frozen=True)
class WalletInfo:
    address: str
    kind: str
    derivation_path: str
    public_key: str
    network: str
    chain_id: int


@dataclass(frozen=True)
class ConnectResult:
    address: str
    network: str
    chain_id: int
    expected_chain_id: int
    can_sign: bool = True

    @property
    def chain_id_mismatch(self):
        return self.chain_id != self.expected_chain_id
