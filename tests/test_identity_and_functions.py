"""Tests for IdentityClient and FunctionsClient over httpx.MockTransport."""
import json

import httpx
import pytest

from gamecloud_toolkit.clients.config import FunctionsConfig, IdentityConfig
from gamecloud_toolkit.clients.functions import FunctionsClient
from gamecloud_toolkit.clients.identity import IdentityClient
from gamecloud_toolkit.errors import AuthenticationRequired, IdentityError


class FakePlayFab:
    """Routes PlayFab Client API paths to canned responses and records requests."""

    def __init__(self):
        self.requests = []
        self.records = {}
        self.fail_paths = {}

    def __call__(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content or b"{}")
        self.requests.append((request.url.path, body, request.headers.get("X-Authorization")))

        if request.url.path in self.fail_paths:
            status, message = self.fail_paths[request.url.path]
            return httpx.Response(status, json={"code": status, "errorMessage": message})

        if request.url.path == "/Client/LoginWithEmailAddress":
            return httpx.Response(200, json={"data": {
                "SessionTicket": "TICKET-ABCDEF",
                "PlayFabId": "PF123",
                "InfoResultPayload": {"PlayerProfile": {"DisplayName": "Ace"}},
            }})
        if request.url.path == "/Client/RegisterPlayFabUser":
            return httpx.Response(200, json={"data": {"SessionTicket": "TICKET-NEW", "PlayFabId": "PF456"}})
        if request.url.path == "/Client/GetUserData":
            data = {k: {"Value": v} for k, v in self.records.items() if k in body["Keys"]}
            return httpx.Response(200, json={"data": {"Data": data}})
        if request.url.path == "/Client/UpdateUserData":
            self.records.update(body["Data"])
            return httpx.Response(200, json={"data": {"DataVersion": 4}})
        if request.url.path == "/Client/ExecuteCloudScript":
            return httpx.Response(200, json={"data": {"FunctionResult": {"granted": body["FunctionName"]}}})
        return httpx.Response(404, json={"errorMessage": "Unknown API"})


@pytest.fixture
def playfab():
    return FakePlayFab()


@pytest.fixture
def identity(playfab):
    return IdentityClient(IdentityConfig(credential="ABC12"), transport=httpx.MockTransport(playfab))


class TestIdentityClient:
    """Test suite for IdentityClient."""

    @pytest.mark.asyncio
    async def test_login_sets_session(self, identity, playfab):
        result = await identity.login("ace@example.com", "hunter22")

        assert result.session_token == "TICKET-ABCDEF"
        assert result.user_id == "PF123"
        assert result.display_name == "Ace"
        assert identity.has_session

        path, body, auth = playfab.requests[0]
        assert path == "/Client/LoginWithEmailAddress"
        assert body["TitleId"] == "ABC12"
        assert body["InfoRequestParameters"] == {"GetPlayerProfile": True}
        assert auth is None

    @pytest.mark.asyncio
    async def test_default_base_url_uses_title(self):
        client = IdentityClient(IdentityConfig(credential="ABC12"))
        await client.ensure_ready()

        assert client._handle.base_url.host == "abc12.playfabapi.com"
        await client.aclose()

    @pytest.mark.asyncio
    async def test_login_rejection_carries_provider_message(self, identity, playfab):
        playfab.fail_paths["/Client/LoginWithEmailAddress"] = (400, "Invalid email address or password")

        with pytest.raises(IdentityError, match="Invalid email address or password"):
            await identity.login("ace@example.com", "wrong")
        assert not identity.has_session

    @pytest.mark.asyncio
    async def test_register_uses_display_name_as_username(self, identity, playfab):
        result = await identity.register("new@example.com", "hunter22", "Newbie")

        _, body, _ = playfab.requests[0]
        assert body["Username"] == "Newbie"
        assert body["DisplayName"] == "Newbie"
        assert body["RequireBothUsernameAndEmail"] is False
        assert result.display_name == "Newbie"
        assert identity.has_session

    @pytest.mark.asyncio
    async def test_user_data_round_trip(self, identity, playfab):
        await identity.login("ace@example.com", "hunter22")

        assert await identity.update_user_data({"GameState": '{"score": 3}'}) == 4
        assert await identity.get_user_data(["GameState", "Missing"]) == {"GameState": '{"score": 3}'}

        _, _, auth = playfab.requests[-1]
        assert auth == "TICKET-ABCDEF"

    @pytest.mark.asyncio
    async def test_get_user_data_without_session_skips_network(self, identity, playfab):
        assert await identity.get_user_data(["GameState"]) == {}
        assert playfab.requests == []

    @pytest.mark.asyncio
    async def test_update_without_session_raises(self, identity, playfab):
        with pytest.raises(AuthenticationRequired):
            await identity.update_user_data({"GameState": "{}"})
        assert playfab.requests == []

    @pytest.mark.asyncio
    async def test_update_after_logout_raises(self, identity):
        await identity.login("ace@example.com", "hunter22")
        identity.clear_session_ticket()

        with pytest.raises(AuthenticationRequired):
            await identity.update_user_data({"GameState": "{}"})

    @pytest.mark.asyncio
    async def test_provider_failures_degrade(self, identity, playfab):
        await identity.login("ace@example.com", "hunter22")
        playfab.fail_paths["/Client/GetUserData"] = (500, "Internal")
        playfab.fail_paths["/Client/UpdateUserData"] = (429, "Throttled")

        assert await identity.get_user_data(["GameState"]) == {}
        assert await identity.update_user_data({"GameState": "{}"}) is None

    @pytest.mark.asyncio
    async def test_execute_cloud_script(self, identity, playfab):
        assert await identity.execute_cloud_script("grantReward") is None

        await identity.login("ace@example.com", "hunter22")
        assert await identity.execute_cloud_script("grantReward", {"amount": 5}) == {"granted": "grantReward"}

        _, body, _ = playfab.requests[-1]
        assert body == {"FunctionName": "grantReward", "FunctionParameter": {"amount": 5}}

    @pytest.mark.asyncio
    async def test_transport_error_becomes_identity_error(self):
        def refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        client = IdentityClient(IdentityConfig(credential="ABC12"), transport=httpx.MockTransport(refuse))

        with pytest.raises(IdentityError, match="Login failed"):
            await client.login("ace@example.com", "hunter22")


class TestFunctionsClient:
    """Test suite for FunctionsClient."""

    @pytest.mark.asyncio
    async def test_call_function_posts_json(self):
        seen = []

        def handler(request):
            seen.append((str(request.url), json.loads(request.content)))
            return httpx.Response(200, json={"position": 2, "topScores": [90, 80]})

        client = FunctionsClient(FunctionsConfig(endpoint="https://fn.example"), transport=httpx.MockTransport(handler))

        assert await client.process_leaderboard("p1", 80) == {"position": 2, "topScores": [90, 80]}
        assert seen == [("https://fn.example/api/leaderboardExtras", {"playerId": "p1", "score": 80})]

    @pytest.mark.asyncio
    async def test_error_status_propagates(self):
        client = FunctionsClient(
            FunctionsConfig(endpoint="https://fn.example"),
            transport=httpx.MockTransport(lambda request: httpx.Response(500)),
        )

        with pytest.raises(httpx.HTTPStatusError):
            await client.call_function("leaderboardExtras", {})

    @pytest.mark.asyncio
    async def test_missing_endpoint_raises(self):
        with pytest.raises(RuntimeError):
            await FunctionsClient(FunctionsConfig()).call_function("anything")

    @pytest.mark.asyncio
    async def test_validate_game_data_reports_unavailable(self):
        client = FunctionsClient(
            FunctionsConfig(endpoint="https://fn.example"),
            transport=httpx.MockTransport(lambda request: httpx.Response(503)),
        )

        assert await client.validate_game_data({"score": 1}) == {
            "isValid": False,
            "errors": ["Validation service unavailable"],
        }

    @pytest.mark.asyncio
    async def test_validate_game_data_passes_result_through(self):
        client = FunctionsClient(
            FunctionsConfig(endpoint="https://fn.example"),
            transport=httpx.MockTransport(lambda request: httpx.Response(200, json={"isValid": True, "errors": []})),
        )

        assert await client.validate_game_data({"score": 1}) == {"isValid": True, "errors": []}
