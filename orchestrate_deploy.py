#!/usr/bin/env python3
import os, sys, json, re, shlex, getpass, subprocess
from pathlib import Path

from funding_config import load_cfg
from funding_errors import FundingError, ValidationError, DeployError
from funding_monitor import ensure_funded_from_cfg
from wallet_utils import validate_address, validate_key, derive_address, fmt_eth

DEPLOYED_RE = re.compile(r"Deployed to:\s*(0x[0-9a-fA-F]{40})")

def prompt_operator(ask=input, ask_secret=getpass.getpass):
    print("== Wallet setup ==")
    address = validate_address(ask("Wallet address (0x...): ").strip())
    private_key = validate_key(ask_secret("Private key (hidden): "), "private key")
    encryption_key = validate_key(ask_secret("Encryption key (hidden): "), "encryption key")
    derived = derive_address(private_key)
    if derived.lower() != address.lower():
        raise ValidationError(f"private key belongs to {derived}, not {address}")
    return address, private_key, encryption_key

def child_env(cfg, address, private_key, encryption_key, **extra):
    # copy; secrets must never land in os.environ of this process
    env = dict(os.environ)
    env.update({
        "RPC_URL": cfg["rpc"]["url"],
        "WALLET_ADDRESS": address,
        "PRIVATE_KEY": private_key,
        "ENCRYPTION_KEY": encryption_key,
    })
    env.update({k: str(v) for k, v in extra.items()})
    return env

def check_tools(tools):
    print("== Check toolchain ==")
    missing = []
    if isinstance(tools, str):
        tools = [tools]
    for tool in tools or []:
        r = subprocess.run(["bash","-lc", f"command -v {shlex.quote(str(tool))}"], capture_output=True, text=True)
        if r.returncode == 0:
            print(f"✅ {tool}: {r.stdout.strip()}")
        else:
            print(f"❌ {tool} not found!")
            missing.append(tool)
    if missing:
        raise DeployError(f"missing tools: {', '.join(missing)}")

def run_step(cmd, cwd, env, what):
    print(f"[DEPLOY] {what}: {cmd} (in {cwd})")
    r = subprocess.run(["bash","-lc", cmd], cwd=str(cwd), env=env, capture_output=True, text=True)
    print(r.stdout + r.stderr)
    if r.returncode != 0:
        raise DeployError(f"{what} failed with exit code {r.returncode}")
    return r.stdout + r.stderr

def contract_entries(D):
    """Check every deploy.contracts entry before anything runs. Returns (name, command, workdir) tuples."""
    contracts = D.get("contracts") or []
    if not isinstance(contracts, list):
        raise ValidationError(f"deploy.contracts must be a list, got {type(contracts).__name__}")
    entries = []
    for i, c in enumerate(contracts, 1):
        if not isinstance(c, dict):
            raise ValidationError(f"deploy.contracts[{i}]: expected a mapping with name/command, got {c!r}")
        name = str(c.get("name") or f"contract{i}")
        cmd = c.get("command")
        if not isinstance(cmd, str) or not cmd.strip():
            raise ValidationError(f"deploy.contracts[{i}] ({name}): missing command")
        entries.append((name, cmd, Path(c.get("workdir") or D.get("workdir") or ".")))
    return entries

def deploy_contracts(cfg, env):
    D = cfg["deploy"]
    entries = contract_entries(D)
    if not entries:
        print("No contracts configured under deploy.contracts; nothing to deploy.")
        return {}
    print("== Deploy contracts ==")
    deployed = {}
    for name, cmd, cwd in entries:
        if not cwd.is_dir():
            raise DeployError(f"{name}: workdir {cwd} does not exist")
        out = run_step(cmd, cwd, env, f"deploy {name}")
        m = DEPLOYED_RE.search(out)
        deployed[name] = m.group(1) if m else None
        print(f"{name} deployed at:", deployed[name] or "(address not found in output)")
    out_file = Path(D.get("output_file") or "deployments.json")
    try:
        out_file.write_text(json.dumps(deployed, indent=2))
    except OSError as e:
        raise DeployError(f"could not write {out_file}: {e}") from e
    print("Deployments written to", out_file)
    return deployed

def run_followup(cfg, env, contract_address=None):
    FU = cfg.get("followup") or {}
    if not FU.get("enabled"):
        return False
    print("== Follow-up transaction ==")
    repo = Path(FU.get("repo_dir") or "")
    if not FU.get("repo_dir") or not repo.is_dir():
        raise DeployError(f"follow-up repo_dir {repo} not found")
    if not FU.get("command"):
        raise DeployError("follow-up enabled but followup.command is empty")
    env = dict(env)
    if contract_address:
        env["CONTRACT_ADDRESS"] = contract_address
    run_step(FU["command"], repo, env, "follow-up")
    return True

def main(ask=input, ask_secret=getpass.getpass):
    try:
        cfg = load_cfg()
        contract_entries(cfg["deploy"])
        address, pk, ek = prompt_operator(ask, ask_secret)
        print("Wallet:", address)

        print("== Fund wallet ==")
        result = ensure_funded_from_cfg(cfg, address)
        if not result.funded:
            print("ERROR:", result.error)
            return 2
        print(f"Balance OK: {fmt_eth(result.balance_wei)} ETH")

        check_tools(cfg.get("tools"))
        env = child_env(cfg, address, pk, ek)
        deployed = deploy_contracts(cfg, env)
        first = next((a for a in deployed.values() if a), None)
        run_followup(cfg, env, first)
    except FundingError as e:
        print("ERROR:", e)
        return 1
    except (KeyboardInterrupt, EOFError):
        print("\nERROR: aborted by operator")
        return 1
    print("Done.")
    return 0

if __name__=="__main__":
    sys.exit(main())
