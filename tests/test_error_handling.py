"""
Tests for the error classes.

Tests cover:
- ErrorCode values
- VoiceoverError creation and to_dict()
- ValidationError / RemoteError inheritance
- RemoteError status code handling
"""
import pytest

from voiceover.services import ErrorCode, RemoteError, ValidationError, VoiceoverError


class TestErrorCode:
    @pytest.mark.parametrize("name", [
        "API_KEY_REQUIRED", "VOICE_REQUIRED", "TEXT_REQUIRED", "SHARED_VOICE_INCOMPLETE",
        "INVALID_SETTING", "RESET_DECLINED", "REMOTE_FAILED", "NOT_FOUND", "INTERNAL_ERROR",
    ])
    def test_code_is_its_own_name(self, name):
        assert getattr(ErrorCode, name) == name


class TestVoiceoverError:
    def test_defaults(self):
        err = VoiceoverError("boom")
        assert err.message == "boom"
        assert str(err) == "boom"
        assert err.code == ErrorCode.INTERNAL_ERROR
        assert err.details == {}

    def test_to_dict_without_details(self):
        assert VoiceoverError("boom").to_dict() == {
            "ok": False,
            "error": "INTERNAL_ERROR",
            "message": "boom",
        }

    def test_to_dict_with_details(self):
        err = VoiceoverError("bad", ErrorCode.INVALID_SETTING, details={"field": "stability"})
        assert err.to_dict()["details"] == {"field": "stability"}


class TestValidationError:
    def test_is_voiceover_error(self):
        err = ValidationError("no key", ErrorCode.API_KEY_REQUIRED)
        assert isinstance(err, VoiceoverError)
        assert err.code == ErrorCode.API_KEY_REQUIRED

    def test_can_be_caught_as_base(self):
        with pytest.raises(VoiceoverError):
            raise ValidationError("no text", ErrorCode.TEXT_REQUIRED)


class TestRemoteError:
    def test_status_code_in_details(self):
        err = RemoteError("API request failed (HTTP 401)", 401)
        assert err.code == ErrorCode.REMOTE_FAILED
        assert err.status_code == 401
        assert err.to_dict()["details"] == {"status_code": 401}

    def test_transport_failure_has_no_status(self):
        err = RemoteError("Failed to fetch voices: connection refused")
        assert err.status_code is None
        assert "details" not in err.to_dict()

    def test_explicit_details_kept(self):
        err = RemoteError("x", 500, details={"status_code": 599, "path": "/v1/voices"})
        assert err.details == {"status_code": 599, "path": "/v1/voices"}
