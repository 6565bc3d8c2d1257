"""Command-line entrypoint driven by positional parameters from a management agent."""

from __future__ import annotations

import argparse
import signal
from pathlib import Path

from fleetdrop_core.config import JAMF_RESERVED_PARAMS, load_settings, resolve_request
from fleetdrop_core.errors import Interrupted
from fleetdrop_core.logging_setup import configure_logging, install_crash_hooks

from .capabilities import Toolkit
from .orchestrator import run_install
from .system import default_toolkit

_INTERRUPT_SIGNALS = ("SIGTERM", "SIGHUP", "SIGINT")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="fleetdrop-install",
        description="Download and install a .pkg or .dmg from a URL",
    )
    parser.add_argument(
        "params",
        nargs="*",
        metavar="PARAM",
        help="URL, SHA-256, display name, receipt id or app name, minimum OS, forced type (pkg|dmg)",
    )
    parser.add_argument(
        "--jamf",
        action="store_true",
        help="Drop Jamf's three leading parameters (mount point, computer, user)",
    )
    parser.add_argument("--settings", default=None, help="Path to a settings JSON file")
    parser.add_argument("--no-console", action="store_true", help="Log to the log file only")
    return parser


def _raise_interrupted(signum, _frame) -> None:
    raise Interrupted(signum)


def _install_signal_handlers() -> dict:
    previous = {}
    for name in _INTERRUPT_SIGNALS:
        sig = getattr(signal, name, None)
        if sig is not None:
            previous[sig] = signal.signal(sig, _raise_interrupted)
    return previous


def _restore_signal_handlers(previous: dict) -> None:
    for sig, handler in previous.items():
        signal.signal(sig, handler)


def main(argv: list[str] | None = None, toolkit: Toolkit | None = None) -> int:
    args = build_parser().parse_args(argv)

    params = list(args.params)
    if args.jamf:
        params = params[JAMF_RESERVED_PARAMS:]

    settings = load_settings(Path(args.settings).expanduser() if args.settings else None)
    request = resolve_request(params)

    logger = configure_logging(request.display_name, settings.paths.log_file, console=not args.no_console)
    install_crash_hooks()
    previous = _install_signal_handlers()

    try:
        outcome = run_install(request, toolkit or default_toolkit(settings), settings)
    except Interrupted as exc:
        logger.error("Interrupted by signal %d; cleaned up.", exc.signum)
        return exc.exit_code
    finally:
        _restore_signal_handlers(previous)

    logger.info("Finished: %s (exit %d)", outcome.status.value, outcome.exit_code)
    return outcome.exit_code


if __name__ == "__main__":
    raise SystemExit(main())
