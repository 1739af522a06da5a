import pytest


@pytest.fixture(autouse=True)
def isolate_user_config(monkeypatch, tmp_path):
    """Point the configuration loader at a file that does not exist.

    Tests must never pick up the developer's own
    ``~/.commit_wizard/config.json``.
    """
    monkeypatch.setenv("COMMIT_WIZARD_CONFIG", str(tmp_path / "missing-config.json"))
    monkeypatch.delenv("VISUAL", raising=False)
    monkeypatch.delenv("EDITOR", raising=False)
    yield
