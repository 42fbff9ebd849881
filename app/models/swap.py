from dataclasses import dataclass, field
from typing import Optional

from lib.date_utils import now_ts


@dataclass(frozen=True)
class SwapQuote:
    from_token: str
    to_token: str
    amount_raw: int
    output_amount_raw: int
    estimated_gas: int
    route: str
    network: str
    created_ts: float = field(default_factory=now_ts)

    def is_expired(self, ttl: float, now: Optional[float] = None) -> bool:
        now = now_ts() if now is None else now
        return now - self.created_ts > ttl

    def matches(self, from_token: str, to_token: str, amount_raw: int, network: str) -> bool:
        return (
            self.from_token.lower() == from_token.lower() and
            self.to_token.lower() == to_token.lower() and
            self.amount_raw == amount_raw and
            self.network == network
        )


@dataclass(frozen=True)
class SwapResult:
    tx_hash: str
    quote: Optional[SwapQuote] = None
    approval_tx_hash: str = ''
