"""
Tests for provider error normalization.
"""
import pytest


class HTTPishError(Exception):
    """Exception carrying SDK-style attributes."""

    def __init__(self, message, status_code=None, body=None):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class TestNormalizeProviderError:
    """Mapping of upstream failures to safe messages."""

    @pytest.mark.parametrize(
        "status,expected",
        [
            (401, "OpenAI: Invalid or missing API key. Check your key in the backend .env."),
            (429, "OpenAI: Rate limit or quota exceeded. Please try again later."),
            (400, "OpenAI: Bad request. Try simplifying or shortening the prompt."),
            (500, "OpenAI: Service is temporarily unavailable. Please retry shortly."),
            (503, "OpenAI: Service is temporarily unavailable. Please retry shortly."),
        ],
    )
    def test_known_status_classes(self, status, expected):
        """Test fixed messages for known HTTP statuses."""
        from llm_compare.services.streaming import normalize_provider_error

        error = normalize_provider_error(HTTPishError("secret details", status), "openai")

        assert error.user_message == expected
        assert error.status == status
        assert "secret details" not in error.user_message

    def test_unknown_error_strips_urls(self):
        """Test fallback message drops URLs."""
        from llm_compare.services.streaming import normalize_provider_error

        error = normalize_provider_error(
            RuntimeError("Timed out calling https://generativelanguage.googleapis.com/v1 now"),
            "google",
        )

        assert error.user_message.startswith("Gemini: Timed out calling")
        assert "https://" not in error.user_message
        assert error.user_message.endswith("now")

    def test_unknown_error_is_length_capped(self):
        """Test fallback message is capped at 200 characters of detail."""
        from llm_compare.services.streaming import normalize_provider_error

        error = normalize_provider_error(ValueError("x" * 500), "openai")

        assert error.user_message == "OpenAI: " + "x" * 200

    def test_empty_error_uses_generic_message(self):
        """Test generic fallback when no detail is available."""
        from llm_compare.services.streaming import normalize_provider_error

        error = normalize_provider_error(RuntimeError(), "google")

        assert error.user_message == "Gemini: Something went wrong. Please try again."

    def test_url_only_error_uses_generic_message(self):
        """Test a message that is nothing but a URL falls back to generic text."""
        from llm_compare.services.streaming import normalize_provider_error

        error = normalize_provider_error(RuntimeError("https://example.com/x"), "openai")

        assert error.user_message == "OpenAI: Something went wrong. Please try again."

    def test_log_message_keeps_details(self):
        """Test the server-side message has status, code and raw text."""
        from llm_compare.services.streaming import normalize_provider_error

        err = HTTPishError(
            "quota",
            status_code=429,
            body={"error": {"code": "rate_limit_exceeded", "message": "quota hit"}},
        )
        error = normalize_provider_error(err, "openai")

        assert error.code == "rate_limit_exceeded"
        assert error.log_message == (
            "OpenAI error (status=429 code=rate_limit_exceeded): quota hit"
        )

    def test_log_message_without_status(self):
        """Test n/a placeholders."""
        from llm_compare.services.streaming import normalize_provider_error

        error = normalize_provider_error(RuntimeError("boom"), "google")

        assert error.log_message == "Gemini error (status=n/a code=n/a): boom"

    def test_status_from_response(self):
        """Test status nested in a response object."""
        from llm_compare.services.streaming import normalize_provider_error

        class Response:
            status_code = 401

        err = RuntimeError("denied")
        err.response = Response()

        error = normalize_provider_error(err, "openai")
        assert error.status == 401
