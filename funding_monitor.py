#!/usr/bin/env python3
"""Claim test funds for a wallet and wait until its balance reaches a threshold.

    INIT     -> FUNDED     balance already >= threshold, faucet untouched
    INIT     -> CLAIMING
    CLAIMING -> POLLING    faucet acknowledged
    CLAIMING -> EXHAUSTED  every attempt failed
    POLLING  -> FUNDED     balance >= threshold
    POLLING  -> POLLING    until max_wait (None = wait forever)
"""
import sys, time
from dataclasses import dataclass
from enum import Enum
from typing import NamedTuple, Optional

from chain_rpc import ChainRPC
from faucet_claim import Faucet, claim_with_retries
from funding_config import load_cfg, cfg_number
from funding_errors import FundingError, ValidationError, ExhaustionError, FundingTimeoutError
from wallet_utils import validate_address, eth_to_wei, fmt_eth, display_address

class State(str, Enum):
    INIT = "INIT"
    CLAIMING = "CLAIMING"
    POLLING = "POLLING"
    FUNDED = "FUNDED"
    EXHAUSTED = "EXHAUSTED"

class Endpoints(NamedTuple):
    rpc_url: str
    faucet_url: Optional[str]

@dataclass
class FundingResult:
    state: State
    balance_wei: int
    claim_attempts: int = 0
    polls: int = 0
    error: Optional[ExhaustionError] = None

    @property
    def funded(self) -> bool:
        return self.state is State.FUNDED

    def raise_for_state(self):
        if self.error is not None:
            raise self.error
        return self

class FundingMonitor:
    """Drives one claim-and-wait cycle. `faucet=None` means claiming is disabled."""

    def __init__(self, rpc: ChainRPC, faucet: Optional[Faucet], max_wait: Optional[float] = None,
                 sleep=time.sleep, clock=time.monotonic):
        self.rpc = rpc
        self.faucet = faucet
        self.max_wait = max_wait
        self._sleep = sleep
        self._clock = clock
        self.state = State.INIT

    @classmethod
    def from_cfg(cls, cfg: dict, **kw):
        R, F = cfg["rpc"], cfg["faucet"]
        rpc = ChainRPC(R["url"], timeout=cfg_number(R, "timeout", 20, minimum=0, where="rpc"),
                       retries=cfg_number(R, "retries", 0, kind=int, minimum=0, where="rpc"))
        # 0 means "don't wait at all"; only null/absent means unbounded
        max_wait = cfg_number(cfg["funding"], "max_wait", None, minimum=0, optional=True, where="funding")
        faucet = Faucet.from_cfg(F) if F.get("enabled", True) else None
        return cls(rpc, faucet, max_wait=max_wait, **kw)

    @property
    def endpoints(self) -> Endpoints:
        return Endpoints(self.rpc.url, self.faucet.url if self.faucet else None)

    def _enter(self, state: State, note=""):
        print(f"[STATE] {self.state.value} -> {state.value}" + (f" ({note})" if note else ""))
        self.state = state

    def _balance(self, address, threshold_wei, tag="BAL") -> int:
        bal = self.rpc.get_balance_wei(address)
        print(f"[{tag}] {display_address(address)} = {fmt_eth(bal)} ETH (need >= {fmt_eth(threshold_wei)})")
        return bal

    def ensure_funded(self, address: str, threshold, max_claim_retries: int = 3,
                      poll_interval: float = 30) -> FundingResult:
        validate_address(address)
        threshold_wei = eth_to_wei(threshold)
        if isinstance(max_claim_retries, bool) or not isinstance(max_claim_retries, int) or max_claim_retries < 1:
            raise ValidationError(f"max_claim_retries must be an int >= 1, got {max_claim_retries!r}")
        if isinstance(poll_interval, bool) or not isinstance(poll_interval, (int, float)) or poll_interval < 0:
            raise ValidationError(f"poll_interval must be >= 0, got {poll_interval!r}")
        self.state = State.INIT

        bal = self._balance(address, threshold_wei)
        if bal >= threshold_wei:
            self._enter(State.FUNDED, "already funded, no faucet claim")
            return FundingResult(State.FUNDED, bal)

        if self.faucet is None:
            err = ExhaustionError(0, "faucet disabled and balance below threshold")
            self._enter(State.EXHAUSTED, str(err))
            return FundingResult(State.EXHAUSTED, bal, error=err)

        self._enter(State.CLAIMING, f"up to {max_claim_retries} faucet attempts")
        claim, attempts = claim_with_retries(self.faucet, address, max_claim_retries, poll_interval, sleep=self._sleep)
        if not claim.acknowledged:
            err = ExhaustionError(attempts)
            self._enter(State.EXHAUSTED, str(err))
            return FundingResult(State.EXHAUSTED, bal, claim_attempts=attempts, error=err)

        limit = f", max {self.max_wait}s" if self.max_wait is not None else ""
        self._enter(State.POLLING, f"every {poll_interval}s{limit}")
        started = self._clock()
        polls = 0
        while True:
            self._sleep(poll_interval)
            polls += 1
            bal = self._balance(address, threshold_wei, tag="POLL")
            if bal >= threshold_wei:
                self._enter(State.FUNDED, f"after {polls} polls")
                return FundingResult(State.FUNDED, bal, claim_attempts=attempts, polls=polls)
            waited = self._clock() - started
            if self.max_wait is not None and waited >= self.max_wait:
                raise FundingTimeoutError(waited, self.max_wait)

    def close(self):
        self.rpc.close()
        if self.faucet is not None:
            self.faucet.close()

def ensure_funded_from_cfg(cfg: dict, address: str, **kw) -> FundingResult:
    FUND = cfg["funding"]
    retries = cfg_number(FUND, "max_claim_retries", 3, kind=int, minimum=1, where="funding")
    interval = cfg_number(FUND, "poll_interval", 30, minimum=0, where="funding")
    monitor = FundingMonitor.from_cfg(cfg, **kw)
    try:
        return monitor.ensure_funded(address, FUND.get("threshold_eth", "0.1"),
                                     max_claim_retries=retries, poll_interval=interval)
    finally:
        monitor.close()

def main(argv=None):
    argv = sys.argv[1:] if argv is None else argv
    if len(argv) < 1:
        print("Usage: python3 funding_monitor.py <address>")
        return 1
    try:
        result = ensure_funded_from_cfg(load_cfg(), argv[0])
    except FundingError as e:
        print("ERROR:", e)
        return 1
    if not result.funded:
        print("ERROR:", result.error)
        return 2
    print(f"Funded: {fmt_eth(result.balance_wei)} ETH")
    return 0

if __name__=="__main__":
    sys.exit(main())
