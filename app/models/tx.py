from dataclasses import dataclass


class TxStatus:
    SUCCESS = 'success'
    FAILED = 'failed'


class TxDirection:
    SENT = 'sent'
    RECEIVED = 'received'
    CONTRACT = 'contract'


@dataclass(frozen=True)
class TransactionRecord:
    hash: str
    block_number: int
    timestamp: int
    from_address: str
    to_address: str
    value_native: str
    gas_used: int
    gas_price: int
    status: str
    direction: str

    @property
    def is_success(self):
        return self.status == TxStatus.SUCCESS

    @property
    def fee_raw(self):
        return self.gas_used * self.gas_price
