from typing import Annotated

from pydantic import BeforeValidator


def _int_from_any(value):
    if isinstance(value, str):
        value = value.strip()
        return int(value, 16) if value.lower().startswith('0x') else int(value)
    return int(value)


IntFromStr = Annotated[int, BeforeValidator(_int_from_any)]
