import pytest
from aiohttp import ClientConnectionError

from api.w3.endpoint_pool import EndpointPool
from api.w3.errors import AllEndpointsUnavailable, RpcError
from tests.helpers import FakeChain, FakeEndpointPool

URLS = ['http://node-1', 'http://node-2', 'http://node-3']


@pytest.mark.asyncio
async def test_failover_to_third_endpoint():
    chain = FakeChain(chain_id=10)
    pool = FakeEndpointPool('optimism', chain, urls=URLS, failing=URLS[:2])

    assert await pool.call('eth_chainId') == hex(10)
    assert [c.attempts for c in pool.clients] == [1, 1, 1]


@pytest.mark.asyncio
async def test_all_endpoints_fail_after_exactly_three_attempts():
    pool = FakeEndpointPool('ethereum', FakeChain(), urls=URLS, failing=URLS)

    with pytest.raises(AllEndpointsUnavailable) as exc_info:
        await pool.call('eth_blockNumber')

    assert isinstance(exc_info.value.__cause__, ClientConnectionError)
    assert sum(c.attempts for c in pool.clients) == 3


@pytest.mark.asyncio
async def test_every_call_starts_from_primary():
    pool = FakeEndpointPool('ethereum', FakeChain(), urls=URLS, failing=URLS[:1])
    await pool.call('eth_chainId')
    await pool.call('eth_chainId')
    assert [c.attempts for c in pool.clients] == [2, 2, 0]


@pytest.mark.asyncio
async def test_rpc_error_is_not_failed_over():
    chain = FakeChain()
    pool = FakeEndpointPool('ethereum', chain, urls=URLS)

    with pytest.raises(RpcError):
        await pool.call('eth_unknownMethod')

    assert [c.attempts for c in pool.clients] == [1, 0, 0]


@pytest.mark.asyncio
async def test_delay_between_endpoints_only(monkeypatch):
    sleeps = []

    async def fake_sleep(d):
        sleeps.append(d)

    monkeypatch.setattr('api.w3.endpoint_pool.asyncio.sleep', fake_sleep)

    pool = FakeEndpointPool('ethereum', FakeChain(), urls=URLS, failing=URLS)
    pool.retry_delay = 1.0
    with pytest.raises(AllEndpointsUnavailable):
        await pool.call('eth_chainId')

    # no sleep after the last endpoint
    assert sleeps == [1.0, 1.0]


def test_empty_pool_is_rejected():
    with pytest.raises(ValueError):
        EndpointPool('ethereum', [])
