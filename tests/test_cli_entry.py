from __future__ import annotations

import json
import runpy
import signal
import sys
from pathlib import Path

import pytest

import fleetdrop_installer.__main__ as installer_main
import fleetdrop_installer.cli as cli
from fleetdrop_core.logging_setup import reset_logging


@pytest.fixture(autouse=True)
def _clean_logging(monkeypatch):
    monkeypatch.setattr(sys, "excepthook", sys.excepthook)
    reset_logging()
    yield
    reset_logging()


def _settings_file(fake_system, tmp_path: Path) -> str:
    path = tmp_path / "settings.json"
    path.write_text(
        json.dumps({"paths": {
            "log_file": fake_system.settings.paths.log_file,
            "scratch_root": fake_system.settings.paths.scratch_root,
            "applications_dir": fake_system.settings.paths.applications_dir,
            "volumes_root": fake_system.settings.paths.volumes_root,
        }}),
        encoding="utf-8",
    )
    return str(path)


def test_parser_accepts_positional_params() -> None:
    args = cli.build_parser().parse_args(["https://x/a.pkg", "", "Demo", "com.example.demo"])
    assert args.params == ["https://x/a.pkg", "", "Demo", "com.example.demo"]
    assert not args.jamf


def test_main_jamf_params_install_dmg(fake_system, tmp_path) -> None:
    settings = _settings_file(fake_system, tmp_path)
    argv = [
        "--jamf", "--no-console", "--settings", settings,
        "/", "mac-042", "admin",
        "https://downloads.example.com/Demo.dmg", "", "Demo", "Demo.app", "", "",
    ]
    rc = cli.main(argv, toolkit=fake_system.toolkit())
    assert rc == 0
    assert (fake_system.applications_dir / "Demo.app").is_dir()

    log_text = Path(fake_system.settings.paths.log_file).read_text(encoding="utf-8")
    assert "[Demo] DMG mounted at:" in log_text
    assert "[Demo] Finished: Installed (exit 0)" in log_text


def test_main_missing_url_returns_10(fake_system, tmp_path) -> None:
    settings = _settings_file(fake_system, tmp_path)
    rc = cli.main(["--no-console", "--settings", settings], toolkit=fake_system.toolkit())
    assert rc == 10
    log_text = Path(fake_system.settings.paths.log_file).read_text(encoding="utf-8")
    assert "[Package] ERROR: No URL provided" in log_text


def test_main_restores_signal_handlers(fake_system, tmp_path) -> None:
    before = signal.getsignal(signal.SIGTERM)
    settings = _settings_file(fake_system, tmp_path)
    cli.main(["--no-console", "--settings", settings, "https://x/a.bin"], toolkit=fake_system.toolkit())
    assert signal.getsignal(signal.SIGTERM) == before


def test_main_reports_interrupt_exit_code(fake_system, tmp_path, monkeypatch) -> None:
    def _interrupted(request, toolkit, settings):
        raise cli.Interrupted(signal.SIGTERM)

    monkeypatch.setattr(cli, "run_install", _interrupted)
    settings = _settings_file(fake_system, tmp_path)
    rc = cli.main(["--no-console", "--settings", settings, "https://x/a.pkg"], toolkit=fake_system.toolkit())
    assert rc == 128 + signal.SIGTERM


def test_module_main_passes_through_args(monkeypatch) -> None:
    calls: list[list[str]] = []
    monkeypatch.setattr(installer_main, "_cli_main", lambda argv=None: calls.append(list(argv or [])) or 0)

    rc = installer_main.main(["https://x/a.pkg", "", "Demo"])
    assert rc == 0
    assert calls == [["https://x/a.pkg", "", "Demo"]]


def test_main_module_runpath_without_package_context() -> None:
    main_path = (
        Path(__file__).resolve().parents[1]
        / "installers"
        / "remote"
        / "fleetdrop_installer"
        / "__main__.py"
    )
    result = runpy.run_path(str(main_path))
    assert "main" in result
