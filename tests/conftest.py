import pytest


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Point the TOML config at a per-test temp dir."""
    path = tmp_path / "config" / "config.toml"
    monkeypatch.setattr("sasdecode.profiles.get_config_path", lambda: path)
    return path
