import pytest
import yaml

from funding_config import DEFAULTS, load_cfg
from funding_errors import ValidationError


def test_missing_file_gives_defaults(capsys):
    cfg = load_cfg()
    assert cfg == DEFAULTS
    assert cfg is not DEFAULTS
    assert "not found" in capsys.readouterr().out


def test_partial_file_merges_over_defaults(tmp_path):
    p = tmp_path / "c.yaml"
    p.write_text(yaml.safe_dump({"faucet": {"success_mode": "json"}, "funding": {"max_wait": None}}))
    cfg = load_cfg(p)
    assert cfg["faucet"]["success_mode"] == "json"
    assert cfg["faucet"]["url"] == DEFAULTS["faucet"]["url"]
    assert cfg["funding"]["max_wait"] is None
    assert cfg["funding"]["threshold_eth"] == "0.1"


def test_env_var_selects_file(tmp_path, monkeypatch):
    p = tmp_path / "other.yaml"
    p.write_text(yaml.safe_dump({"rpc": {"url": "https://rpc.other"}}))
    monkeypatch.setenv("FUNDING_CONFIG", str(p))
    assert load_cfg()["rpc"]["url"] == "https://rpc.other"


def test_non_mapping_rejected(tmp_path):
    p = tmp_path / "c.yaml"
    p.write_text("- a\n- b\n")
    with pytest.raises(ValidationError):
        load_cfg(p)


def test_defaults_not_mutated(tmp_path):
    cfg = load_cfg()
    cfg["faucet"]["extra_headers"]["X"] = "y"
    assert DEFAULTS["faucet"]["extra_headers"] == {}


class TestCfgNumber:
    def test_reads_and_converts(self):
        from funding_config import cfg_number
        assert cfg_number({"n": "3"}, "n", 1, kind=int) == 3
        assert cfg_number({"n": 2.0}, "n", 1, kind=int) == 2
        assert cfg_number({}, "n", 30) == 30.0
        assert cfg_number({"n": 0}, "n", None, minimum=0, optional=True) == 0.0

    def test_optional_none(self):
        from funding_config import cfg_number
        assert cfg_number({"n": None}, "n", 5, optional=True) is None
        assert cfg_number({}, "n", None, optional=True) is None

    @pytest.mark.parametrize("value,kind", [
        ("three", int), (None, int), ([3], int), (True, int), (2.5, int),
        ("abc", float), ("nan", float), ("inf", float), ({}, float),
    ])
    def test_rejects_garbage(self, value, kind):
        from funding_config import cfg_number
        with pytest.raises(ValidationError) as exc:
            cfg_number({"n": value}, "n", 1, kind=kind, where="funding")
        assert "funding.n" in str(exc.value)

    def test_minimum(self):
        from funding_config import cfg_number
        with pytest.raises(ValidationError):
            cfg_number({"n": -1}, "n", None, minimum=0, optional=True)
        with pytest.raises(ValidationError):
            cfg_number({"n": 0}, "n", 3, kind=int, minimum=1)
