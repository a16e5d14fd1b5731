"""Fatal error types for buildsift.

Only *fatal* conditions raise.  Parse ambiguities are recovered locally
by the classifier, subprocess failures flow through ``SessionReport``,
and strategy failures flow through ``RebuildResult``.
"""

from __future__ import annotations

from buildsift.models.errors import StructuredError


class SiftError(RuntimeError):
    """Base class for fatal buildsift errors.

    Carries enough context to render a ``StructuredError`` for users
    rather than a raw traceback.
    """

    code: str = "SIFT_ERROR"
    default_actions: tuple[str, ...] = ()

    def __init__(
        self,
        message: str,
        *,
        technical_detail: str = "",
        suggested_actions: list[str] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.technical_detail = technical_detail
        self.suggested_actions = (
            list(suggested_actions)
            if suggested_actions is not None
            else list(self.default_actions)
        )

    def to_structured(self) -> StructuredError:
        """Return the user-facing structured form of this error."""
        return StructuredError(
            code=self.code,
            message=self.message,
            technical_detail=self.technical_detail,
            suggested_actions=self.suggested_actions,
        )


class NoInputError(SiftError):
    """Raised when the build output stream is empty."""

    code = "NO_INPUT"
    default_actions = (
        "Pipe build output into the parser: "
        "xcodebuild build -scheme MyApp 2>&1 | buildsift parse",
        "Check that the build command actually produced output on stdout/stderr.",
    )


class BuildLaunchError(SiftError):
    """Raised when the build command cannot be started at all."""

    code = "BUILD_LAUNCH_FAILED"
    default_actions = (
        "Verify the build tool is installed and on PATH.",
        "Run the build command manually to check its arguments.",
    )
