import time, requests

from funding_errors import TransientNetworkError, MalformedResponseError
from wallet_utils import validate_address, parse_hex_wei

class ChainRPC:
    """Minimal JSON-RPC client, only what funding needs: eth_getBalance."""

    def __init__(self, url: str, timeout: float = 20, retries: int = 0, retry_delay: float = 2,
                 session=None, sleep=time.sleep):
        self.url = url
        self.timeout = timeout
        # extra attempts on transport errors only; 0 = fail on first error
        self.retries = max(0, int(retries))
        self.retry_delay = retry_delay
        self.session = session or requests.Session()
        self._sleep = sleep

    def call(self, method: str, params: list):
        payload = {"jsonrpc": "2.0", "method": method, "params": params, "id": 1}
        for i in range(self.retries + 1):
            try:
                r = self.session.post(self.url, json=payload, timeout=self.timeout)
                r.raise_for_status()
                break
            except requests.RequestException as e:
                if i >= self.retries:
                    raise TransientNetworkError(f"{method} via {self.url} failed: {e}") from e
                print(f"[RPC] {method} failed ({e}); retry {i+1}/{self.retries} in {self.retry_delay}s")
                self._sleep(self.retry_delay)
        try:
            body = r.json()
        except ValueError:
            raise MalformedResponseError(f"{method}: response is not JSON: {(r.text or '')[:200]!r}") from None
        if not isinstance(body, dict):
            raise MalformedResponseError(f"{method}: unexpected response {body!r}")
        if body.get("error") is not None:
            raise MalformedResponseError(f"{method}: rpc error {body['error']!r}")
        return body.get("result")

    def get_balance_wei(self, address: str, block: str = "latest") -> int:
        validate_address(address)
        return parse_hex_wei(self.call("eth_getBalance", [address, block]))

    def close(self):
        self.session.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()
