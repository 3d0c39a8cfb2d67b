"""PlayFab client: player identity plus the per-player key/value record store."""
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import httpx

from ..errors import AuthenticationRequired, IdentityError
from .base import CredentialBearingClient
from .config import IdentityConfig

logger = logging.getLogger(__name__)


@dataclass
class LoginResult:
    session_token: str
    user_id: str
    display_name: str = ""


class IdentityClient(CredentialBearingClient[IdentityConfig]):
    """
    Thin wrapper around the PlayFab Client REST API.

    The credential is the PlayFab title id. Login and registration raise
    IdentityError with a message suitable for display; record-store reads
    degrade to empty results, and writes without a session raise
    AuthenticationRequired.
    """

    service_name = "Identity"

    def __init__(self, config: IdentityConfig, resolver=None, transport: Optional[httpx.AsyncBaseTransport] = None):
        super().__init__(config, resolver)
        self._transport = transport
        self._title_id: Optional[str] = None
        self._session_ticket: Optional[str] = None

    async def _build_handle(self, credential: str) -> httpx.AsyncClient:
        self._title_id = credential
        base_url = self.config.base_url or f"https://{credential}.playfabapi.com"
        return httpx.AsyncClient(base_url=base_url, timeout=self.config.timeout, transport=self._transport)

    async def aclose(self) -> None:
        if self._handle is not None:
            await self._handle.aclose()

    def set_session_ticket(self, ticket: str) -> None:
        self._session_ticket = ticket
        logger.info(f"Session ticket set: {ticket[:5]}...")

    def clear_session_ticket(self) -> None:
        self._session_ticket = None
        logger.info("Session ticket cleared")

    @property
    def has_session(self) -> bool:
        return self._session_ticket is not None

    async def _post(self, path: str, payload: Dict[str, Any], authorized: bool = False) -> Dict[str, Any]:
        """
        POST to a PlayFab endpoint and unwrap the "data" envelope.

        Raises:
            IdentityError: With PlayFab's errorMessage when the call is rejected
            httpx.HTTPError: On transport failure
        """
        headers = {}
        if authorized:
            headers["X-Authorization"] = self._session_ticket
        response = await self._handle.post(path, json=payload, headers=headers)

        try:
            body = response.json()
        except ValueError:
            body = {}

        if response.status_code != 200 or not isinstance(body, dict) or body.get("data") is None:
            message = body.get("errorMessage") if isinstance(body, dict) else None
            raise IdentityError(message or f"Request failed with status: {response.status_code}")
        return body["data"]

    async def _account_call(self, path: str, payload: Dict[str, Any], operation: str, failure_message: str) -> Dict[str, Any]:
        if not await self._ready_or_warn(operation):
            raise IdentityError("Identity service is not configured")

        try:
            return await self._post(path, {"TitleId": self._title_id, **payload})
        except IdentityError as e:
            logger.error(f"{failure_message}: {e}")
            raise
        except httpx.HTTPError as e:
            logger.error(f"{failure_message}: {e}")
            raise IdentityError(failure_message) from e

    async def login(self, email: str, password: str) -> LoginResult:
        """Log in with email and password and remember the session ticket."""
        logger.info(f"Logging in with email: {email}")
        data = await self._account_call(
            "/Client/LoginWithEmailAddress",
            {
                "Email": email,
                "Password": password,
                "InfoRequestParameters": {"GetPlayerProfile": True},
            },
            "log in",
            "Login failed",
        )

        ticket = data.get("SessionTicket")
        if not ticket:
            raise IdentityError("Login failed: No data returned")
        self.set_session_ticket(ticket)

        profile = (data.get("InfoResultPayload") or {}).get("PlayerProfile") or {}
        return LoginResult(
            session_token=ticket,
            user_id=data.get("PlayFabId", ""),
            display_name=profile.get("DisplayName") or "",
        )

    async def register(self, email: str, password: str, display_name: str) -> LoginResult:
        """Register a new player; display_name doubles as the username."""
        logger.info(f"Registering user with email: {email}, displayName: {display_name}")
        data = await self._account_call(
            "/Client/RegisterPlayFabUser",
            {
                "Email": email,
                "Password": password,
                "Username": display_name,
                "DisplayName": display_name,
                "RequireBothUsernameAndEmail": False,
            },
            "register",
            "Registration failed",
        )

        ticket = data.get("SessionTicket")
        if not ticket:
            raise IdentityError("Registration failed: No data returned")
        self.set_session_ticket(ticket)

        return LoginResult(
            session_token=ticket,
            user_id=data.get("PlayFabId", ""),
            display_name=display_name,
        )

    async def get_user_data(self, keys: List[str]) -> Dict[str, str]:
        """
        Read string values for keys from the player's record.

        Missing keys are simply absent from the result. Without a session,
        or on any failure, the result is empty.
        """
        logger.info(f"Getting player data for keys: {', '.join(keys)}")

        if not self.has_session:
            logger.warning("No session ticket available. User may need to login first.")
            return {}

        if not await self._ready_or_warn("get player data"):
            return {}

        try:
            data = await self._post("/Client/GetUserData", {"Keys": keys}, authorized=True)
        except (IdentityError, httpx.HTTPError) as e:
            logger.error(f"Get player data failed: {e}")
            return {}

        records = data.get("Data") or {}
        return {
            key: record["Value"]
            for key, record in records.items()
            if isinstance(record, dict) and record.get("Value")
        }

    async def update_user_data(self, data: Dict[str, str]) -> Optional[int]:
        """
        Write string values into the player's record.

        Returns:
            The new data version, or None if the write failed

        Raises:
            AuthenticationRequired: If there is no logged-in session
        """
        logger.info(f"Updating player data with keys: {', '.join(data)}")

        if not self.has_session:
            logger.warning("No session ticket available. User may need to login first.")
            raise AuthenticationRequired()

        if not await self._ready_or_warn("update player data"):
            return None

        try:
            result = await self._post("/Client/UpdateUserData", {"Data": data}, authorized=True)
        except (IdentityError, httpx.HTTPError) as e:
            logger.error(f"Update player data failed: {e}")
            return None

        return result.get("DataVersion")

    async def execute_cloud_script(self, function_name: str, parameters: Optional[Dict[str, Any]] = None) -> Any:
        """Run a CloudScript function for the current player; None on failure."""
        if not self.has_session:
            logger.warning("No session ticket available. Cannot execute CloudScript.")
            return None

        if not await self._ready_or_warn("execute CloudScript"):
            return None

        try:
            result = await self._post(
                "/Client/ExecuteCloudScript",
                {"FunctionName": function_name, "FunctionParameter": parameters or {}},
                authorized=True,
            )
        except (IdentityError, httpx.HTTPError) as e:
            logger.error(f"Failed to execute CloudScript function {function_name}: {e}")
            return None

        if result.get("Error"):
            logger.error(f"CloudScript function {function_name} raised: {result['Error'].get('Message')}")
            return None
        return result.get("FunctionResult")
