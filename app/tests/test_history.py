import pytest

from api.w3.errors import InvalidInput
from models.tx import TxDirection, TxStatus
from tests.helpers import GatewayFixture, HARDHAT_ADDRESS, OTHER_ADDRESS, make_config


def tx(n, sender, receiver, value=10 ** 18):
    return {
        'hash': '0x' + f'{n:064x}',
        'from': sender.lower(),
        'to': receiver.lower() if receiver else None,
        'value': hex(value),
        'gasPrice': hex(2 * 10 ** 9),
    }


def fill_blocks(chain, count=30, per_block=1):
    n = 0
    for i in range(count):
        number = chain.tip - i
        txs = []
        for _ in range(per_block):
            n += 1
            if n % 2:
                txs.append(tx(n, HARDHAT_ADDRESS, OTHER_ADDRESS))
            else:
                txs.append(tx(n, OTHER_ADDRESS, HARDHAT_ADDRESS))
        # one foreign tx per block
        txs.append(tx(10_000 + i, OTHER_ADDRESS, OTHER_ADDRESS))
        chain.add_block(number, 1_700_000_000 + number * 12, txs)


@pytest.mark.asyncio
async def test_history_limit_and_order():
    fx = GatewayFixture()
    fill_blocks(fx.eth)

    records = await fx.gateway.history(HARDHAT_ADDRESS, 'ethereum', limit=5)

    assert len(records) == 5
    timestamps = [r.timestamp for r in records]
    assert timestamps == sorted(timestamps, reverse=True)
    assert records[0].block_number == fx.eth.tip
    assert records[0].direction == TxDirection.SENT
    assert records[1].direction == TxDirection.RECEIVED
    assert records[0].value_native == '1.0'
    assert records[0].status == TxStatus.SUCCESS
    assert records[0].gas_used == 21000
    assert records[0].from_address == HARDHAT_ADDRESS

    # stops early once enough records are collected
    assert fx.eth.method_count('eth_getBlockByNumber') == 5


@pytest.mark.asyncio
async def test_history_block_budget():
    fx = GatewayFixture(cfg=make_config(history__max_blocks=10))
    fill_blocks(fx.eth, count=30)
    records = await fx.gateway.history(HARDHAT_ADDRESS, 'ethereum', limit=50)
    assert len(records) == 10
    assert fx.eth.method_count('eth_getBlockByNumber') == 10


@pytest.mark.asyncio
async def test_history_near_genesis():
    fx = GatewayFixture()
    fx.eth.tip = 3
    fill_blocks(fx.eth, count=3)
    records = await fx.gateway.history(HARDHAT_ADDRESS, 'ethereum', limit=20)
    # blocks 3, 2 and 1 are inspected
    assert len(records) == 3


@pytest.mark.asyncio
async def test_broken_block_is_skipped():
    fx = GatewayFixture()
    fill_blocks(fx.eth, count=5)
    fx.eth.broken_blocks.add(fx.eth.tip - 1)
    fx.eth.receipts.pop('0x' + f'{3:064x}')  # receipt of the third block is missing

    records = await fx.gateway.history(HARDHAT_ADDRESS, 'ethereum', limit=20)
    blocks = {r.block_number for r in records}
    assert fx.eth.tip - 1 not in blocks
    assert fx.eth.tip in blocks
    # a missing receipt does not kill the block, the tx is still listed but not as a success
    assert fx.eth.tip - 2 in blocks
    unconfirmed = next(r for r in records if r.block_number == fx.eth.tip - 2)
    assert unconfirmed.status == TxStatus.FAILED
    assert unconfirmed.gas_used == 0
    assert unconfirmed.fee_raw == 0


@pytest.mark.asyncio
async def test_failed_tx_status_and_contract_creation_is_sent():
    fx = GatewayFixture()
    creation = tx(1, HARDHAT_ADDRESS, None, value=0)
    failed = tx(2, HARDHAT_ADDRESS, OTHER_ADDRESS)
    fx.eth.add_block(fx.eth.tip, 1_700_000_000, [creation, failed])
    fx.eth.receipts[failed['hash']] = {'status': '0x0', 'gasUsed': hex(30000)}

    records = await fx.gateway.history(HARDHAT_ADDRESS, 'ethereum', limit=2)
    by_hash = {r.hash: r for r in records}
    assert by_hash[creation['hash']].direction == TxDirection.SENT
    assert by_hash[creation['hash']].to_address == ''
    assert by_hash[failed['hash']].status == TxStatus.FAILED
    assert by_hash[failed['hash']].gas_used == 30000
    assert by_hash[failed['hash']].fee_raw == 30000 * 2 * 10 ** 9


@pytest.mark.asyncio
async def test_bad_limit():
    fx = GatewayFixture()
    with pytest.raises(InvalidInput):
        await fx.gateway.history(HARDHAT_ADDRESS, 'ethereum', limit=0)
