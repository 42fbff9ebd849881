from typing import Any, List, Optional

from pydantic import BaseModel, Field, ConfigDict

from models.base import IntFromStr


class OneInchTx(BaseModel):
    to: str
    data: str
    value: IntFromStr = 0
    gas: IntFromStr = 0
    gas_price: IntFromStr = Field(0, alias='gasPrice')

    model_config = ConfigDict(populate_by_name=True)


class OneInchQuoteResponse(BaseModel):
    to_amount: IntFromStr = Field(alias='toAmount')
    estimated_gas: Optional[IntFromStr] = Field(None, alias='estimatedGas')
    gas: Optional[IntFromStr] = None
    protocols: Optional[List[Any]] = None

    model_config = ConfigDict(populate_by_name=True)

    @property
    def gas_estimate(self) -> int:
        return self.estimated_gas or self.gas or 0

    @property
    def route_description(self) -> str:
        names = []

        def walk(node):
            if isinstance(node, list):
                for item in node:
                    walk(item)
            elif isinstance(node, dict):
                name = node.get('name')
                if name and name not in names:
                    names.append(name)

        walk(self.protocols or [])
        return ' > '.join(names) if names else '1inch'


class OneInchSwapResponse(BaseModel):
    to_amount: Optional[IntFromStr] = Field(None, alias='toAmount')
    tx: OneInchTx

    model_config = ConfigDict(populate_by_name=True)
