"""Shared test fixtures."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from mcafee_av.config import Settings, get_settings
from mcafee_av.models import EngineMetadata, Verdict

from .helpers import script

SETTINGS_ENV = (
    "MALICE_ELASTICSEARCH_URL",
    "MALICE_ENDPOINT",
    "MALICE_PROXY",
    "MALICE_SCANID",
    "MALICE_TIMEOUT",
)


@pytest.fixture(autouse=True)
def _fresh_settings(monkeypatch: pytest.MonkeyPatch):
    for name in SETTINGS_ENV:
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture(autouse=True)
def _drop_log_handlers():
    """Handlers bind the stderr of the test that configured them."""
    yield
    logging.getLogger("mcafee_av").handlers.clear()


@pytest.fixture()
def metadata() -> EngineMetadata:
    return EngineMetadata(
        engine_version="Engine version: 6000.8403",
        definition_version="Dat set version: 9999 created Oct 16 2026",
        definition_date="20261016",
    )


@pytest.fixture()
def clean_verdict(metadata: EngineMetadata) -> Verdict:
    return Verdict.clean(metadata)


@pytest.fixture()
def infected_verdict(metadata: EngineMetadata) -> Verdict:
    return Verdict.detected("EICAR test file", metadata)


@pytest.fixture()
def sample_file(tmp_path: Path) -> Path:
    f = tmp_path / "boot.exe"
    f.write_bytes(b"Hello, McAfee!")
    return f


@pytest.fixture()
def eicar_bytes() -> bytes:
    """EICAR anti-malware test string (safe; every AV recognises it)."""
    return b"X5O!P%@AP[4\\PZX54(P^)7CC)7}$EICAR-STANDARD-ANTIVIRUS-TEST-FILE!$H+H*"


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    """Settings pointing every engine command at small Python stand-ins."""
    engine = tmp_path / "fake-scan"
    engine.write_text(
        "#!/bin/sh\n"
        "case \"$1\" in\n"
        "  -v) echo \"Engine version: 6000.8403\" ;;\n"
        "  -V) echo \"Dat set version: 9999 created Oct 16 2026\" ;;\n"
        "  *) exit 2 ;;\n"
        "esac\n"
    )
    engine.chmod(0o755)
    license_file = tmp_path / "license.mcafeelic"
    license_file.write_text("Product=McAfee\nUpdateValidThru=4102444800\n")
    return Settings(
        daemon_start_cmd=script("pass"),
        scan_cmd=script("import sys; print(sys.argv[1] + '\\t[OK]')"),
        engine_binary=str(engine),
        update_cmd=script("print('update done')"),
        updated_file=tmp_path / "UPDATED",
        license_file=license_file,
        upload_dir=tmp_path / "uploads",
        build_time="20260101",
        timeout=10,
        web_timeout=10,
        metadata_timeout=10,
    )


@pytest.fixture()
def slow_engine(tmp_path: Path) -> str:
    """An engine binary whose version queries hang."""
    engine = tmp_path / "slow-scan"
    engine.write_text("#!/bin/sh\nexec sleep 30\n")
    engine.chmod(0o755)
    return str(engine)
