import importlib
import os
import sys

import pytest


def _league_modules():
    return {
        name: module
        for name, module in sys.modules.items()
        if name == "league" or name.startswith("league.")
    }


def _cleanup_league_modules():
    for module in _league_modules():
        sys.modules.pop(module, None)


@pytest.fixture(autouse=True)
def league_import_isolation(monkeypatch):
    app_path = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
    original = _league_modules()
    _cleanup_league_modules()
    monkeypatch.syspath_prepend(app_path)
    try:
        yield
    finally:
        _cleanup_league_modules()
        sys.modules.update(original)


def test_rejects_wildcard_with_credentials(monkeypatch):
    monkeypatch.setenv("ALLOWED_ORIGINS", "*")
    monkeypatch.setenv("ALLOW_CREDENTIALS", "true")
    with pytest.raises(ValueError):
        importlib.import_module("league.main")


def test_requires_allowed_origins(monkeypatch):
    monkeypatch.delenv("ALLOWED_ORIGINS", raising=False)
    monkeypatch.delenv("ALLOW_CREDENTIALS", raising=False)
    with pytest.raises(ValueError):
        importlib.import_module("league.main")


def test_blank_origins_are_rejected(monkeypatch):
    monkeypatch.setenv("ALLOWED_ORIGINS", " , ")
    with pytest.raises(ValueError):
        importlib.import_module("league.main")


def test_explicit_origins_are_accepted(monkeypatch):
    monkeypatch.setenv("ALLOWED_ORIGINS", "https://league.example.com, http://localhost:3000")
    monkeypatch.setenv("ALLOW_CREDENTIALS", "false")

    main = importlib.import_module("league.main")

    assert main.ALLOWED_ORIGINS == ["https://league.example.com", "http://localhost:3000"]
    assert main.ALLOW_CREDENTIALS is False
