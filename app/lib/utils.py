import asyncio
import json
import logging
from functools import wraps
from typing import Awaitable, Callable, Tuple, Type


class RetryPolicy:
    """
    Repeats a whole async operation a fixed number of times.
    The error of the last attempt is re-raised as is.
    Exceptions listed in `give_up_on` are raised immediately.
    """

    def __init__(self, max_attempts=3, delay=1.0, backoff=1.0,
                 give_up_on: Tuple[Type[BaseException], ...] = (),
                 logger=None):
        assert max_attempts > 0
        self.max_attempts = max_attempts
        self.delay = delay
        self.backoff = backoff
        self.give_up_on = tuple(give_up_on)
        self.logger = logger or logging.getLogger(self.__class__.__name__)

    async def run(self, operation: Callable[[], Awaitable], name=''):
        name = name or getattr(operation, '__name__', repr(operation))
        delay = self.delay
        for attempt in range(1, self.max_attempts + 1):
            try:
                return await operation()
            except self.give_up_on:
                raise
            except Exception as e:
                if attempt >= self.max_attempts:
                    raise
                self.logger.warning(f'#{attempt}. {name} failed ({type(e).__name__}: {e}), retrying...')
            if delay > 0:
                await asyncio.sleep(delay)
            delay *= self.backoff

    def __repr__(self):
        return f'RetryPolicy(max_attempts={self.max_attempts}, delay={self.delay})'


async def with_retry(operation: Callable[[], Awaitable], retries=3, delay=1.0, give_up_on=()):
    return await RetryPolicy(retries, delay, give_up_on=give_up_on).run(operation)


def retries(times, delay=0.0, give_up_on=()):
    assert times > 0

    def func_wrapper(f):
        @wraps(f)
        async def wrapper(*args, **kwargs):
            policy = RetryPolicy(wrapper.times, delay, give_up_on=give_up_on)
            return await policy.run(lambda: f(*args, **kwargs), name=f.__name__)

        wrapper.times = times
        return wrapper

    return func_wrapper


def load_json(filepath):
    with open(filepath, 'r') as fp:
        return json.load(fp)


def strip_trailing_slash(url: str):
    return url.rstrip('/')


def unique_ordered(items):
    seen = set()
    result = []
    for item in items:
        if item not in seen:
            seen.add(item)
            result.append(item)
    return result
