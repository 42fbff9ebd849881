class WalletGatewayError(Exception):
    pass


class InvalidInput(WalletGatewayError):
    pass


class InvalidMnemonic(InvalidInput):
    pass


class InvalidPrivateKey(InvalidInput):
    pass


class InvalidAddress(InvalidInput):
    pass


class InvalidAmount(InvalidInput):
    pass


class NoWalletConnected(WalletGatewayError):
    pass


class UnsupportedNetwork(WalletGatewayError):
    pass


class ConnectionFailed(WalletGatewayError):
    pass


class ChainIdMismatch(ConnectionFailed):
    def __init__(self, expected: int, observed: int, network=''):
        super().__init__(f'Chain id mismatch on "{network}": expected {expected}, got {observed}')
        self.expected = expected
        self.observed = observed
        self.network = network


class AllEndpointsUnavailable(WalletGatewayError):
    pass


class RpcError(WalletGatewayError):
    def __init__(self, message, code=None, data=None):
        super().__init__(f'RPC error {code}: {message}' if code is not None else message)
        self.code = code
        self.data = data


class NoContractAtAddress(WalletGatewayError):
    pass


class InvalidTokenContract(WalletGatewayError):
    pass


class QuoteFailed(WalletGatewayError):
    pass


class SwapExecutionFailed(WalletGatewayError):
    pass


class AllowanceInsufficientRetryNeeded(WalletGatewayError):
    """Raised internally by the swap broker when an approval must precede the swap."""

    def __init__(self, allowance: int, required: int):
        super().__init__(f'Allowance {allowance} is less than required {required}')
        self.allowance = allowance
        self.required = required
