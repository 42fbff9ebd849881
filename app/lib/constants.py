HTTP_CLIENT_ID = 'evm-wallet-gateway'

ZERO_ADDRESS = '0x0000000000000000000000000000000000000000'
NATIVE_TOKEN_ADDRESS = ZERO_ADDRESS

# aggregators encode the native coin with this placeholder
AGGREGATOR_NATIVE_ADDRESS = '0xEeeeeEeeeEeEeeEeEeEeeEEEeeeeEeeeeeeeEEeE'

DEFAULT_DERIVATION_PATH = "m/44'/60'/0'/0/0"


class NetworkKeys:
    ETHEREUM = 'ethereum'
    OPTIMISM = 'optimism'
    ARBITRUM = 'arbitrum'
    BSC = 'bsc'

    ALL = (ETHEREUM, OPTIMISM, ARBITRUM, BSC)


class ChainIds:
    ETHEREUM = 1
    OPTIMISM = 10
    BSC = 56
    POLYGON = 137
    ARBITRUM = 42161


class RpcMethods:
    CHAIN_ID = 'eth_chainId'
    BLOCK_NUMBER = 'eth_blockNumber'
    GET_BALANCE = 'eth_getBalance'
    GET_CODE = 'eth_getCode'
    CALL = 'eth_call'
    GET_BLOCK_BY_NUMBER = 'eth_getBlockByNumber'
    GET_TX_RECEIPT = 'eth_getTransactionReceipt'
    GET_TX_COUNT = 'eth_getTransactionCount'
    GAS_PRICE = 'eth_gasPrice'
    ESTIMATE_GAS = 'eth_estimateGas'
    SEND_RAW_TX = 'eth_sendRawTransaction'
