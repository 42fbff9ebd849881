import asyncio
from typing import Callable, Optional

from api.oneinch.connector import OneInchConnector
from api.w3.erc20_contract import ERC20Contract
from api.w3.errors import (
    UnsupportedNetwork, InvalidAmount, InvalidInput, SwapExecutionFailed, AllowanceInsufficientRetryNeeded,
    WalletGatewayError,
)
from api.w3.networks import NetworkRegistry
from api.w3.signer import Signer
from api.w3.wallet_session import WalletSession
from api.w3.web3_helper import Web3Helper, to_checksum, hex_to_int
from lib.config import Config
from lib.constants import NATIVE_TOKEN_ADDRESS, AGGREGATOR_NATIVE_ADDRESS
from lib.logs import WithLogger
from lib.money import parse_units, AmountError
from models.swap import SwapQuote, SwapResult

DEFAULT_QUOTE_TTL = 30.0
DEFAULT_RECEIPT_TIMEOUT = 180.0
MAX_SLIPPAGE = 50.0


def to_aggregator_token(address: str) -> str:
    if address.lower() == NATIVE_TOKEN_ADDRESS:
        return AGGREGATOR_NATIVE_ADDRESS
    return to_checksum(address)


def is_native(address: str) -> bool:
    return address.lower() in (NATIVE_TOKEN_ADDRESS, AGGREGATOR_NATIVE_ADDRESS.lower())


def amount_to_raw(amount, decimals: int) -> int:
    try:
        raw = parse_units(amount, decimals)
    except AmountError as e:
        raise InvalidAmount(str(e)) from e
    if raw <= 0:
        raise InvalidAmount(f'Amount must be positive, got {amount!r}')
    return raw


class SwapBroker(WithLogger):
    """
    Quotes and executes swaps through the aggregator.
    ERC-20 inputs get an exact-amount approval for the router before the swap is sent.
    """

    def __init__(self, cfg: Config, networks: NetworkRegistry, wallet: WalletSession,
                 helper_factory: Callable[[str], Web3Helper], connector: OneInchConnector):
        super().__init__()
        self.networks = networks
        self.wallet = wallet
        self.helper_factory = helper_factory
        self.connector = connector
        self.quote_ttl = cfg.as_interval('aggregator.quote_ttl', DEFAULT_QUOTE_TTL)
        self.receipt_timeout = cfg.as_interval('aggregator.receipt_timeout', DEFAULT_RECEIPT_TIMEOUT)
        self.receipt_poll_interval = cfg.as_interval('aggregator.receipt_poll_interval', '2s')

    def _supported_network(self, network_key: str):
        network = self.networks.get(network_key)
        if not self.connector.is_chain_supported(network.chain_id):
            raise UnsupportedNetwork(f'Swaps are not supported on "{network.key}"')
        return network

    async def quote(self, from_token: str, to_token: str, amount, decimals: int, network_key: str) -> SwapQuote:
        network = self._supported_network(network_key)
        amount_raw = amount_to_raw(amount, decimals)
        return await self._quote_raw(from_token, to_token, amount_raw, network.key, network.chain_id)

    async def _quote_raw(self, from_token, to_token, amount_raw, network_key, chain_id) -> SwapQuote:
        src, dst = to_aggregator_token(from_token), to_aggregator_token(to_token)
        response = await self.connector.quote(chain_id, src, dst, amount_raw)
        quote = SwapQuote(
            from_token=from_token,
            to_token=to_token,
            amount_raw=amount_raw,
            output_amount_raw=response.to_amount,
            estimated_gas=response.gas_estimate,
            route=response.route_description,
            network=network_key,
        )
        self.logger.info(f'Quote on "{network_key}": {amount_raw} of {src} -> {quote.output_amount_raw} of {dst} '
                         f'via {quote.route}.')
        return quote

    # ---- execution ----

    async def _check_allowance(self, token: ERC20Contract, owner: str, spender: str, amount_raw: int):
        allowance = await token.allowance(owner, spender)
        if allowance < amount_raw:
            raise AllowanceInsufficientRetryNeeded(allowance, amount_raw)
        return allowance

    async def _ensure_allowance(self, signer: Signer, token_address: str, spender: str, amount_raw: int) -> str:
        token = ERC20Contract(signer.helper, token_address)
        try:
            await self._check_allowance(token, signer.address, spender, amount_raw)
            return ''
        except AllowanceInsufficientRetryNeeded as e:
            self.logger.info(f'Approving {amount_raw} of {token.address} for {spender} (current {e.allowance}).')

        approve_hash = await signer.send_transaction(
            to=token.address,
            data=ERC20Contract.encode_approve(spender, amount_raw),
        )
        receipt = await signer.wait_for_receipt(approve_hash, self.receipt_timeout, self.receipt_poll_interval)
        if hex_to_int(receipt.get('status', '0x1')) != 1:
            raise SwapExecutionFailed(f'Approval transaction {approve_hash} reverted')
        return approve_hash

    async def execute(self, from_token: str, to_token: str, amount, decimals: int, slippage: float,
                      network_key: str, quote: Optional[SwapQuote] = None) -> SwapResult:
        signer = self.wallet.require_signer()
        network = self._supported_network(network_key)
        if signer.network.key != network.key:
            raise InvalidInput(f'Wallet is connected to "{signer.network.key}", not "{network.key}"')

        slippage = float(slippage)
        if not 0 < slippage <= MAX_SLIPPAGE:
            raise InvalidInput(f'Slippage must be within (0, {MAX_SLIPPAGE}], got {slippage}')

        amount_raw = amount_to_raw(amount, decimals)

        if quote is not None and (quote.is_expired(self.quote_ttl) or
                                  not quote.matches(from_token, to_token, amount_raw, network.key)):
            self.logger.info('Quote is stale or does not match the request, re-quoting.')
            quote = await self._quote_raw(from_token, to_token, amount_raw, network.key, network.chain_id)

        approve_hash = ''
        if not is_native(from_token):
            try:
                approve_hash = await self._ensure_allowance(signer, from_token, network.router_address, amount_raw)
            except SwapExecutionFailed:
                raise
            except (WalletGatewayError, asyncio.TimeoutError, ValueError) as e:
                raise SwapExecutionFailed(f'Approval failed: {type(e).__name__}: {e}') from e

        swap = await self.connector.swap(
            network.chain_id,
            to_aggregator_token(from_token),
            to_aggregator_token(to_token),
            amount_raw,
            signer.address,
            slippage,
        )

        try:
            tx_hash = await signer.send_transaction(
                to=swap.tx.to,
                data=swap.tx.data,
                value=swap.tx.value,
                gas=swap.tx.gas or None,
                gas_price=swap.tx.gas_price or None,
            )
        except (WalletGatewayError, ValueError) as e:
            raise SwapExecutionFailed(f'Swap broadcast failed: {type(e).__name__}: {e}') from e

        self.logger.info(f'Swap sent on "{network.key}": {tx_hash}.')
        return SwapResult(tx_hash=tx_hash, quote=quote, approval_tx_hash=approve_hash)
