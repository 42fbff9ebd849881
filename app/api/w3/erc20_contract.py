from typing import Dict, List

from eth_abi.exceptions import DecodingError
from eth_utils import function_abi_to_4byte_selector
from web3 import Web3

from api.w3.errors import InvalidTokenContract
from api.w3.web3_helper import Web3Helper, to_checksum
from lib.path import data_file
from lib.utils import load_json

# no provider: only used to encode and decode call data, the RPC goes through the endpoint pool
_CODEC_W3 = Web3()


class AbiFunction:
    def __init__(self, entry: dict):
        self.entry = entry
        self.name = entry['name']
        self.input_types: List[str] = [i['type'] for i in entry.get('inputs', [])]
        self.output_types: List[str] = [o['type'] for o in entry.get('outputs', [])]
        self.selector: bytes = bytes(function_abi_to_4byte_selector(entry))


def decode_text_result(data: str) -> str:
    """
    ERC-20 symbol() and name() normally return a string,
    legacy tokens (like MKR) return bytes32 instead.
    """
    raw = Web3.to_bytes(hexstr=data) if data not in ('', '0x') else b''
    if not raw:
        return ''
    try:
        (text,) = _CODEC_W3.codec.decode(['string'], raw)
        return text.strip('\x00').strip()
    except (DecodingError, ValueError, OverflowError):
        (value,) = _CODEC_W3.codec.decode(['bytes32'], raw[:32].ljust(32, b'\x00'))
        return value.replace(b'\x00', b'').decode('utf-8', errors='ignore').strip()


class ERC20Contract:
    DEFAULT_ABI_ERC20 = 'erc20.abi.json'

    _contract = None
    _functions: Dict[str, AbiFunction] = {}

    @classmethod
    def contract(cls):
        if cls._contract is None:
            abi = load_json(data_file(cls.DEFAULT_ABI_ERC20))
            cls._contract = _CODEC_W3.eth.contract(abi=abi)
            cls._functions = {e['name']: AbiFunction(e) for e in abi if e.get('type') == 'function'}
        return cls._contract

    @classmethod
    def functions(cls) -> Dict[str, AbiFunction]:
        cls.contract()
        return cls._functions

    def __init__(self, helper: Web3Helper, address: str):
        self.helper = helper
        self.address = to_checksum(address)

    @classmethod
    def encode(cls, fn_name, *args) -> str:
        data = cls.contract().encode_abi(fn_name, args=list(args))
        return data if data.startswith('0x') else f'0x{data}'

    def decode(self, fn_name, data: str):
        fn = self.functions()[fn_name]
        raw = Web3.to_bytes(hexstr=data) if data not in ('', '0x') else b''
        try:
            values = _CODEC_W3.codec.decode(fn.output_types, raw)
        except DecodingError as e:
            raise InvalidTokenContract(
                f'{self.address} returned no valid {fn_name}() result on "{self.helper.network_key}"'
            ) from e
        return values[0] if len(values) == 1 else values

    async def _call(self, fn_name, *args):
        result = await self.helper.eth_call(self.address, self.encode(fn_name, *args))
        return self.decode(fn_name, result)

    async def _call_text(self, fn_name) -> str:
        result = await self.helper.eth_call(self.address, self.encode(fn_name))
        return decode_text_result(result)

    async def symbol(self) -> str:
        return await self._call_text('symbol')

    async def name(self) -> str:
        return await self._call_text('name')

    async def decimals(self) -> int:
        return int(await self._call('decimals'))

    async def total_supply(self) -> int:
        return int(await self._call('totalSupply'))

    async def balance_of(self, owner: str) -> int:
        return int(await self._call('balanceOf', to_checksum(owner)))

    async def allowance(self, owner: str, spender: str) -> int:
        return int(await self._call('allowance', to_checksum(owner), to_checksum(spender)))

    @classmethod
    def encode_transfer(cls, to: str, amount: int) -> str:
        return cls.encode('transfer', to_checksum(to), int(amount))

    @classmethod
    def encode_approve(cls, spender: str, amount: int) -> str:
        return cls.encode('approve', to_checksum(spender), int(amount))

    def __repr__(self):
        return f'ERC20Contract({self.address!r} @ {self.helper.network_key})'
