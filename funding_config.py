import os, copy, yaml
from pathlib import Path

from funding_errors import ValidationError

# Seismic devnet
DEFAULTS = {
    "rpc": {
        "url": "https://node-2.seismicdev.net/rpc",
        "timeout": 20,
        "retries": 0,
    },
    "faucet": {
        "enabled": True,
        "url": "https://faucet-2.seismicdev.net/api/claim",
        "method": "POST",
        "address_field": "address",
        "extra_headers": {},
        "extra_payload": {},
        "timeout": 20,
        "success_mode": "marker",
        "success_marker": "success",
        "success_field": "success",
    },
    "funding": {
        "threshold_eth": "0.1",
        "max_claim_retries": 3,
        "poll_interval": 30,
        "max_wait": 1800,
    },
    "tools": ["ssolc", "sforge"],
    "deploy": {
        "workdir": ".",
        "output_file": "deployments.json",
        "contracts": [],
    },
    "followup": {
        "enabled": False,
        "repo_dir": "",
        "command": "",
    },
}

def _merge(base, override):
    out = copy.deepcopy(base)
    for k, v in (override or {}).items():
        if isinstance(v, dict) and isinstance(out.get(k), dict):
            out[k] = _merge(out[k], v)
        else:
            out[k] = v
    return out

def config_path(path=None) -> Path:
    return Path(path or os.environ.get("FUNDING_CONFIG") or "config.yaml")

def load_cfg(path=None) -> dict:
    p = config_path(path)
    if not p.exists():
        print(f"[CFG] {p} not found, using built-in defaults")
        return copy.deepcopy(DEFAULTS)
    raw = yaml.safe_load(p.read_text()) or {}
    if not isinstance(raw, dict):
        raise ValidationError(f"{p}: top level must be a mapping")
    return _merge(DEFAULTS, raw)

def cfg_number(section: dict, key: str, default, kind=float, minimum=None, optional=False, where=""):
    """Read a numeric config value; anything unusable is a ValidationError, not a traceback."""
    name = f"{where}.{key}" if where else key
    value = section.get(key, default)
    if value is None and optional:
        return None
    if isinstance(value, bool):
        raise ValidationError(f"{name}: expected a number, got {value!r}")
    try:
        num = kind(value)
    except (TypeError, ValueError, OverflowError):
        raise ValidationError(f"{name}: expected {'an integer' if kind is int else 'a number'}, got {value!r}") from None
    if kind is float and (num != num or abs(num) == float("inf")):
        raise ValidationError(f"{name}: expected a finite number, got {value!r}")
    if kind is int and isinstance(value, float) and value != num:
        raise ValidationError(f"{name}: expected an integer, got {value!r}")
    if minimum is not None and num < minimum:
        raise ValidationError(f"{name}: must be >= {minimum}, got {value!r}")
    return num
