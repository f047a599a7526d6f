"""
Unit Tests for delivery providers
=================================
Twilio and Unifonic adapters against a mocked HTTP transport.
"""

from urllib.parse import parse_qs

import httpx
import pytest

from otp_core.providers import (
    ProviderRegistry,
    TwilioConfig,
    TwilioProvider,
    UnifonicConfig,
    UnifonicProvider,
    default_registry,
)

PHONE = "+201120305686"


def mock_client(status_code=201, json=None, error=None):
    """AsyncClient whose transport records requests and returns a canned response."""
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        if error is not None:
            raise error("connection refused", request=request)
        return httpx.Response(status_code, json=json or {})

    return httpx.AsyncClient(transport=httpx.MockTransport(handler)), requests


def form(request: httpx.Request) -> dict:
    return {k: v[0] for k, v in parse_qs(request.content.decode()).items()}


class TestTwilioProvider:
    """Tests for the Twilio adapter."""

    @pytest.mark.asyncio
    async def test_sms_send(self):
        """SMS mode should post the rendered body to the Messages API."""
        client, requests = mock_client(201, {"sid": "SM123", "status": "queued"})
        provider = TwilioProvider(
            TwilioConfig(account_sid="AC123", auth_token="secret", from_number="+15005550006"),
            client=client,
        )

        sent = await provider.send(PHONE, "4821", "Your verification code is: 4821.")

        assert sent is True
        request = requests[0]
        assert str(request.url) == "https://api.twilio.com/2010-04-01/Accounts/AC123/Messages.json"
        assert form(request) == {
            "To": PHONE,
            "Body": "Your verification code is: 4821.",
            "From": "+15005550006",
        }

    @pytest.mark.asyncio
    async def test_verify_send(self):
        """Verify mode should register the code as a custom code."""
        client, requests = mock_client(201, {"sid": "VE123", "status": "pending"})
        provider = TwilioProvider(
            TwilioConfig(
                account_sid="AC123",
                auth_token="secret",
                service_type="verify",
                verification_sid="VA999",
            ),
            client=client,
        )

        sent = await provider.send(PHONE, "4821", "ignored")

        assert sent is True
        request = requests[0]
        assert str(request.url) == "https://verify.twilio.com/v2/Services/VA999/Verifications"
        assert form(request) == {"To": PHONE, "Channel": "sms", "CustomCode": "4821"}

    @pytest.mark.asyncio
    async def test_verify_requires_sid(self):
        """Verify mode without a service SID should fail without a request."""
        client, requests = mock_client()
        provider = TwilioProvider(
            TwilioConfig(account_sid="AC123", auth_token="secret", service_type="verify"),
            client=client,
        )

        assert await provider.send(PHONE, "4821", "body") is False
        assert requests == []

    @pytest.mark.asyncio
    async def test_invalid_service_type(self):
        """Unknown service types should fail."""
        client, requests = mock_client()
        provider = TwilioProvider(
            TwilioConfig(account_sid="AC123", auth_token="secret", service_type="carrier-pigeon"),
            client=client,
        )

        assert await provider.send(PHONE, "4821", "body") is False
        assert requests == []

    @pytest.mark.asyncio
    async def test_rejected_message(self):
        """Non-201 responses should report failure."""
        client, _ = mock_client(400, {"code": 21211, "message": "Invalid 'To' Phone Number"})
        provider = TwilioProvider(TwilioConfig(account_sid="AC123", auth_token="secret"), client=client)

        assert await provider.send(PHONE, "4821", "body") is False

    @pytest.mark.asyncio
    async def test_transport_error(self):
        """Connection errors are caught and reported as failure."""
        client, _ = mock_client(error=httpx.ConnectError)
        provider = TwilioProvider(TwilioConfig(account_sid="AC123", auth_token="secret"), client=client)

        assert await provider.send(PHONE, "4821", "body") is False

    def test_config_from_env(self, monkeypatch):
        """Credentials should be read from TWILIO_* variables."""
        monkeypatch.setenv("TWILIO_ACCOUNT_SID", "ACenv")
        monkeypatch.setenv("TWILIO_AUTH_TOKEN", "tok")
        monkeypatch.setenv("TWILIO_FROM", "+15005550006")
        monkeypatch.setenv("TWILIO_SERVICE_TYPE", "verify")
        monkeypatch.setenv("TWILIO_VERIFICATION_SID", "VAenv")

        config = TwilioConfig.from_env()

        assert config.account_sid == "ACenv"
        assert config.from_number == "+15005550006"
        assert config.service_type == "verify"
        assert config.verification_sid == "VAenv"


class TestUnifonicProvider:
    """Tests for the Unifonic adapter."""

    @pytest.mark.asyncio
    async def test_send(self):
        """Should post the form fields and succeed on HTTP 200."""
        client, requests = mock_client(200, {"success": True})
        provider = UnifonicProvider(UnifonicConfig(app_sid="APP1", sender_id="OneStudio"), client=client)

        sent = await provider.send(PHONE, "4821", "Your verification code is: 4821.")

        assert sent is True
        assert str(requests[0].url) == "https://api.unifonic.com/rest/SMS/messages"
        assert form(requests[0]) == {
            "AppSid": "APP1",
            "SenderID": "OneStudio",
            "Recipient": PHONE,
            "Body": "Your verification code is: 4821.",
        }

    @pytest.mark.asyncio
    async def test_non_200_fails(self):
        """Any status other than 200 is a failure."""
        client, _ = mock_client(201)
        provider = UnifonicProvider(UnifonicConfig(app_sid="APP1", sender_id="OneStudio"), client=client)

        assert await provider.send(PHONE, "4821", "body") is False

    @pytest.mark.asyncio
    async def test_transport_error(self):
        """Connection errors are caught and reported as failure."""
        client, _ = mock_client(error=httpx.ConnectError)
        provider = UnifonicProvider(UnifonicConfig(app_sid="APP1", sender_id="OneStudio"), client=client)

        assert await provider.send(PHONE, "4821", "body") is False

    @pytest.mark.asyncio
    async def test_owns_client_lifecycle(self):
        """A provider without an injected client creates and closes its own."""
        provider = UnifonicProvider(UnifonicConfig(app_sid="APP1", sender_id="OneStudio"))

        async with provider:
            assert provider._client is not None

        assert provider._client is None

    @pytest.mark.asyncio
    async def test_injected_client_left_open(self):
        """Closing the provider must not close a client it was given."""
        client, _ = mock_client(200)
        provider = UnifonicProvider(UnifonicConfig(app_sid="APP1", sender_id="OneStudio"), client=client)

        await provider.close()

        assert client.is_closed is False
        await client.aclose()

    @pytest.mark.asyncio
    async def test_close_logs_only_owned_client(self):
        """Only closing a client the provider owns is logged."""
        from structlog.testing import capture_logs

        client, _ = mock_client(200)
        injected = UnifonicProvider(UnifonicConfig(app_sid="APP1", sender_id="OneStudio"), client=client)
        owned = UnifonicProvider(UnifonicConfig(app_sid="APP1", sender_id="OneStudio"))
        await owned.initialize()

        with capture_logs() as injected_logs:
            await injected.close()
        with capture_logs() as owned_logs:
            await owned.close()

        assert [e["event"] for e in injected_logs] == []
        assert [e["event"] for e in owned_logs] == ["Delivery channel closed"]
        await client.aclose()


class TestProviderRegistry:
    """Tests for provider lookup."""

    def test_default_names(self):
        """Built-in registry should know twilio and unifonic."""
        assert default_registry().names() == ["twilio", "unifonic"]

    def test_create_from_settings(self):
        """Settings mappings are turned into provider configs."""
        registry = default_registry()

        provider = registry.create(
            "Twilio",
            {"account_sid": "AC1", "auth_token": "tok", "from": "+15005550006"},
        )

        assert isinstance(provider, TwilioProvider)
        assert provider.config.from_number == "+15005550006"

    def test_unknown_provider(self):
        """Unknown names raise ProviderNotFoundError listing what exists."""
        from otp_core.exceptions import ProviderNotFoundError

        with pytest.raises(ProviderNotFoundError) as exc_info:
            default_registry().create("vonage")

        assert exc_info.value.available == ["twilio", "unifonic"]

    def test_register_custom(self):
        """Custom factories can be registered."""
        registry = ProviderRegistry()
        registry.register(
            "unifonic-ksa",
            lambda settings: UnifonicProvider(UnifonicConfig(app_sid="KSA", sender_id="Brand")),
        )

        assert "unifonic-ksa" in registry
        assert registry.create("unifonic-ksa").config.app_sid == "KSA"
