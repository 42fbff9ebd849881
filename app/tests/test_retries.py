import pytest

from api.w3.errors import InvalidInput
from lib.utils import retries, RetryPolicy, with_retry


@pytest.mark.asyncio
async def test_retries():
    n = 1

    @retries(5)
    async def will_pass():
        nonlocal n
        if n < 3:
            n += 1
            raise ValueError('fail')
        return True

    assert await will_pass()

    with pytest.raises(ValueError):
        n = -10
        await will_pass()

    with pytest.raises(ValueError):
        n = 1
        will_pass.times = 1
        await will_pass()

    n = 1
    will_pass.times = 100
    await will_pass()


@pytest.mark.asyncio
async def test_last_error_is_surfaced():
    attempts = []

    async def op():
        attempts.append(1)
        raise ConnectionError(f'attempt {len(attempts)}')

    with pytest.raises(ConnectionError, match='attempt 3'):
        await RetryPolicy(3, 0).run(op)

    assert len(attempts) == 3


@pytest.mark.asyncio
async def test_invalid_input_is_not_retried():
    attempts = []

    async def op():
        attempts.append(1)
        raise InvalidInput('bad')

    with pytest.raises(InvalidInput):
        await with_retry(op, retries=5, delay=0, give_up_on=(InvalidInput,))

    assert len(attempts) == 1


@pytest.mark.asyncio
async def test_with_retry_success_after_failures():
    attempts = []

    async def op():
        attempts.append(1)
        if len(attempts) < 2:
            raise TimeoutError('slow')
        return 42

    assert await with_retry(op, retries=3, delay=0) == 42
    assert len(attempts) == 2
