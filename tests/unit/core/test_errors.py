"""Unit tests for openadr_overlay.core.errors module."""

import httpx

from openadr_overlay.core.errors import (
    ConfigError,
    DecodeError,
    OpenADRError,
    RegistrationError,
    ReportNotAppliedError,
    ReportSubmissionError,
    ValidationError,
    VTNError,
)


class TestErrorHierarchy:
    """Every error derives from OpenADRError."""

    def test_vtn_errors_share_a_base(self) -> None:
        assert issubclass(RegistrationError, VTNError)
        assert issubclass(ReportSubmissionError, VTNError)
        assert issubclass(VTNError, OpenADRError)

    def test_report_not_applied_is_not_a_vtn_error(self) -> None:
        """Phase-2 failures must be distinguishable from VTN rejections."""
        assert not issubclass(ReportNotAppliedError, VTNError)


class TestErrorFormatting:
    def test_str_without_details(self) -> None:
        assert str(OpenADRError("plain")) == "plain"

    def test_str_with_details(self) -> None:
        assert str(OpenADRError("msg", {"k": 1})) == "msg (details: {'k': 1})"

    def test_validation_error_includes_field(self) -> None:
        error = ValidationError("bad", field="duration", value=0)
        assert "field: duration" in str(error)
        assert "value: 0" in str(error)

    def test_config_error_attributes(self) -> None:
        error = ConfigError("missing", config_file="/tmp/c.yaml", config_key="vtn.base_url")
        assert error.config_file == "/tmp/c.yaml"
        assert error.config_key == "vtn.base_url"

    def test_decode_error_offset(self) -> None:
        assert DecodeError("short", offset=4).offset == 4


class TestVTNErrorFromException:
    def test_preserves_cause_and_subclass(self) -> None:
        """from_exception keeps the subclass and chains the transport error."""
        cause = httpx.ConnectError("refused")
        error = RegistrationError.from_exception(cause, endpoint="/vens")

        assert isinstance(error, RegistrationError)
        assert error.endpoint == "/vens"
        assert error.status_code is None
        assert error.__cause__ is cause
        assert error.details["original_exception"] == "ConnectError"

    def test_report_not_applied_carries_report(self) -> None:
        error = ReportNotAppliedError("not on chain", report={"id": 1})
        assert error.report == {"id": 1}
