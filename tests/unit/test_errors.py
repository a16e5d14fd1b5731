"""Tests for fatal error types and their structured form."""

from __future__ import annotations

from buildsift.core.errors import BuildLaunchError, NoInputError, SiftError


class TestSiftError:
    def test_no_input_defaults(self):
        err = NoInputError("No input received", technical_detail="empty stream")
        structured = err.to_structured()
        assert structured.code == "NO_INPUT"
        assert structured.message == "No input received"
        assert structured.technical_detail == "empty stream"
        assert any("buildsift parse" in action for action in structured.suggested_actions)

    def test_explicit_actions_override_defaults(self):
        err = BuildLaunchError("nope", suggested_actions=["install it"])
        assert err.to_structured().suggested_actions == ["install it"]
        assert err.code == "BUILD_LAUNCH_FAILED"

    def test_hierarchy(self):
        assert issubclass(NoInputError, SiftError)
        assert issubclass(SiftError, RuntimeError)
        assert str(NoInputError("msg")) == "msg"
