#!/usr/bin/env python3
import sys, json, time, requests
from typing import NamedTuple, Optional

from funding_config import load_cfg, cfg_number
from funding_errors import FundingError, ValidationError
from wallet_utils import validate_address

class ClaimResult(NamedTuple):
    acknowledged: bool
    raw: str
    status_code: Optional[int] = None

# The faucet has no stable response contract: some callers grep the body for
# "success", some read a JSON field, some only look at the HTTP status.
def marker_detector(marker="success"):
    def detect(status_code, text):
        return marker in (text or "")
    return detect

def json_field_detector(field="success"):
    def detect(status_code, text):
        try:
            body = json.loads(text or "")
        except ValueError:
            return False
        return isinstance(body, dict) and bool(body.get(field))
    return detect

def http_ok_detector():
    def detect(status_code, text):
        return True
    return detect

def detector_from_cfg(F: dict):
    mode = (F.get("success_mode") or "marker").lower()
    if mode == "marker":
        return marker_detector(F.get("success_marker", "success"))
    if mode == "json":
        return json_field_detector(F.get("success_field", "success"))
    if mode == "http":
        return http_ok_detector()
    raise ValidationError(f"unknown faucet success_mode: {mode!r} (marker|json|http)")

class Faucet:
    def __init__(self, url: str, method="POST", address_field="address", extra_headers=None,
                 extra_payload=None, timeout: float = 20, detect=None, session=None):
        self.url = url
        self.method = (method or "POST").upper()
        self.address_field = address_field
        self.headers = dict(extra_headers or {})
        self.extra_payload = dict(extra_payload or {})
        self.timeout = timeout
        self.detect = detect or marker_detector()
        self.session = session or requests.Session()

    @classmethod
    def from_cfg(cls, F: dict, session=None):
        return cls(F.get("url"), method=F.get("method", "POST"), address_field=F.get("address_field", "address"),
                   extra_headers=F.get("extra_headers"), extra_payload=F.get("extra_payload"),
                   timeout=cfg_number(F, "timeout", 20, minimum=0, where="faucet"),
                   detect=detector_from_cfg(F), session=session)

    def claim_once(self, address: str) -> ClaimResult:
        payload = dict(self.extra_payload)
        payload[self.address_field] = address
        try:
            if self.method == "POST":
                r = self.session.post(self.url, json=payload, headers=self.headers, timeout=self.timeout)
            else:
                r = self.session.get(self.url, params=payload, headers=self.headers, timeout=self.timeout)
        except requests.RequestException as e:
            print("Faucet error:", e)
            return ClaimResult(False, str(e))
        text = r.text or ""
        print("Faucet resp:", r.status_code, text[:200])
        return ClaimResult(bool(r.ok and self.detect(r.status_code, text)), text, r.status_code)

    def close(self):
        self.session.close()

def claim_with_retries(faucet: Faucet, address: str, retries: int, wait_seconds: float, sleep=time.sleep):
    """Claim until acknowledged or `retries` attempts are spent. Returns (last ClaimResult, attempts)."""
    result = None
    for i in range(1, retries+1):
        print(f"[FAUCET] request {i}/{retries} → {address}")
        result = faucet.claim_once(address)
        if result.acknowledged:
            return result, i
        if i < retries:
            sleep(wait_seconds)
    return result, retries

def main(argv=None):
    argv = sys.argv[1:] if argv is None else argv
    if len(argv) < 1:
        print("Usage: python3 faucet_claim.py <address>")
        return 1
    try:
        address = validate_address(argv[0])
        cfg = load_cfg()
        F, FUND = cfg["faucet"], cfg["funding"]
        if not F.get("enabled", True):
            print("Faucet disabled in config.")
            return 2
        retries = cfg_number(FUND, "max_claim_retries", 3, kind=int, minimum=1, where="funding")
        interval = cfg_number(FUND, "poll_interval", 30, minimum=0, where="funding")
        faucet = Faucet.from_cfg(F)
    except FundingError as e:
        print("ERROR:", e)
        return 1
    try:
        result, _ = claim_with_retries(faucet, address, retries, interval)
    finally:
        faucet.close()
    return 0 if result.acknowledged else 2

if __name__=="__main__":
    sys.exit(main())
