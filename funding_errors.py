class FundingError(Exception):
    pass

class ValidationError(FundingError, ValueError):
    """Bad operator input (address, key, number). Never retried."""

class TransientNetworkError(FundingError):
    pass

class MalformedResponseError(TransientNetworkError):
    """RPC answered but the payload can't be read as a balance."""

class ExhaustionError(FundingError):
    def __init__(self, attempts: int, message=None):
        super().__init__(message or f"faucet did not acknowledge success after {attempts} attempts")
        self.attempts = attempts

class FundingTimeoutError(FundingError, TimeoutError):
    def __init__(self, waited: float, max_wait: float):
        super().__init__(f"balance threshold not reached after {waited:.0f}s (max_wait={max_wait}s)")
        self.waited = waited
        self.max_wait = max_wait

class DeployError(FundingError):
    pass
