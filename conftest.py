import pytest

@pytest.fixture(autouse=True)
def no_config_file(monkeypatch, tmp_path):
    # tests must never pick up a developer's config.yaml
    monkeypatch.setenv("FUNDING_CONFIG", str(tmp_path / "missing.yaml"))
