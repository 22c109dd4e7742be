from __future__ import annotations

import os
import sys
import types
from pathlib import Path

import pytest


_SANDBOX = Path(__file__).resolve().parent / ".tmp_test_env"
_HOME = _SANDBOX / "home"
_APPDATA = _HOME / "AppData" / "Roaming"
_TMP = _SANDBOX / "tmp"

for _path in (_HOME / ".config", _APPDATA, _TMP):
    _path.mkdir(parents=True, exist_ok=True)

# config.json and logs/ are written under the app directory; keep them out of the real profile
os.environ.update(
    {
        "HOME": str(_HOME),
        "USERPROFILE": str(_HOME),
        "APPDATA": str(_APPDATA),
        "XDG_CONFIG_HOME": str(_HOME / ".config"),
        "TMP": str(_TMP),
        "TEMP": str(_TMP),
        "TMPDIR": str(_TMP),
    }
)


class _SilentLogger:
    """Accepts any loguru or stdlib logging call and drops it."""

    def __getattr__(self, _name):
        def _drop(*_args, **_kwargs):
            return None

        return _drop

    def bind(self, *_args, **_kwargs):
        return self

    def opt(self, *_args, **_kwargs):
        return self


_silent_logger = _SilentLogger()
_logging_stub = types.ModuleType("GalleryTranslator.util.logging_config")
_logging_stub.logger = _silent_logger
_logging_stub.get_logger = lambda *args, **kwargs: _silent_logger
_logging_stub.initialize_logging = lambda *args, **kwargs: None
_logging_stub.cleanup_old_logs = lambda *args, **kwargs: None
_logging_stub.LoggerManager = object

sys.modules["GalleryTranslator.util.logging_config"] = _logging_stub


@pytest.fixture(autouse=True)
def _fresh_config(monkeypatch):
    from GalleryTranslator.util.config import configuration

    monkeypatch.setattr(configuration, "config_instance", None)
    yield
