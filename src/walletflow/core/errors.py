class WalletFlowError(Exception):
    pass


class MalformedInputError(WalletFlowError):
    pass


class DataSourceError(WalletFlowError):
    pass


class RateLimitError(DataSourceError):
    pass
