"""Fatal install conditions and the exit codes reported to the management agent.

Each subclass maps to exactly one exit code. Non-fatal conditions are never
raised; they are logged as warnings by the step that detects them.
"""

from __future__ import annotations

EXIT_SUCCESS = 0


class InstallError(Exception):
    """Base class for conditions that terminate an install run."""

    exit_code = 1
    reason = "failed"

    def __init__(self, message: str, *, details: dict | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict:
        return {
            "error_type": type(self).__name__,
            "reason": self.reason,
            "exit_code": self.exit_code,
            "message": self.message,
            "details": self.details,
        }


class MissingInput(InstallError):
    exit_code = 10
    reason = "missing_input"


class UnknownArtifactType(InstallError):
    exit_code = 10
    reason = "unknown_artifact_type"


class DownloadFailed(InstallError):
    exit_code = 11
    reason = "download_failed"


class DigestMismatch(InstallError):
    exit_code = 12
    reason = "digest_mismatch"


class SignatureRejected(InstallError):
    """Reserved. Signature assessment is advisory, so the pipeline never raises this."""

    exit_code = 13
    reason = "signature_rejected"


class InstallerFailed(InstallError):
    exit_code = 14
    reason = "installer_failed"


class UnsupportedOs(InstallError):
    exit_code = 15
    reason = "unsupported_os"


class MountFailed(InstallError):
    exit_code = 16
    reason = "mount_failed"


class ApplicationNotFound(InstallError):
    exit_code = 17
    reason = "application_not_found"


class CopyFailed(InstallError):
    exit_code = 18
    reason = "copy_failed"


class Interrupted(BaseException):
    """Raised from a signal handler so scoped cleanup unwinds before exit."""

    def __init__(self, signum: int) -> None:
        super().__init__(f"Interrupted by signal {signum}")
        self.signum = signum

    @property
    def exit_code(self) -> int:
        return 128 + self.signum

