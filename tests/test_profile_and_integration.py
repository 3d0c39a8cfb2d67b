"""Tests for profiles, data integration, the queue worker and service wiring."""
import json
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from gamecloud_toolkit.clients.config import StorageConfig
from gamecloud_toolkit.clients.storage import StorageClient
from gamecloud_toolkit.factory import create_player_session, create_services
from gamecloud_toolkit.game.auth import AuthSession
from gamecloud_toolkit.game.integration import DataIntegrationService
from gamecloud_toolkit.game.models import ProfileData
from gamecloud_toolkit.game.profile import (
    MAX_AVATAR_BYTES,
    PLACEHOLDER_AVATAR_URL,
    ProfileManager,
    avatar_or_placeholder,
)
from gamecloud_toolkit.game.worker import apply_player_operation, process_player_operation
from gamecloud_toolkit.secrets.domains import preferences
from gamecloud_toolkit.secrets.domains.cache import SecretCache

from .fakes import FakeIdentity, FakeSecretClient

OWN_AVATAR = "https://storage.googleapis.com/profile-images/1-old.png"
NEW_AVATAR = "https://storage.googleapis.com/profile-images/2-new.png"


@pytest.fixture
def identity():
    return FakeIdentity()


@pytest.fixture
def auth(identity):
    return AuthSession(identity)


@pytest.fixture
def storage():
    client = StorageClient(StorageConfig())
    client.upload_image = AsyncMock(return_value=NEW_AVATAR)
    client.delete_blob = AsyncMock(return_value=True)
    return client


@pytest.fixture
def profiles(identity, storage, auth):
    return ProfileManager(identity, storage, auth)


class TestProfileManager:
    """Test suite for ProfileManager."""

    @pytest.mark.asyncio
    async def test_load_falls_back_to_session_display_name(self, profiles, auth, identity):
        await auth.login("ace@example.com", "hunter22")
        identity.records["Bio"] = "Speedrunner"

        profile = await profiles.load_profile()

        assert profile == ProfileData(display_name="Player One", bio="Speedrunner", avatar_url="")

    @pytest.mark.asyncio
    async def test_load_logged_out_is_empty(self, profiles):
        assert await profiles.load_profile() == ProfileData()

    @pytest.mark.asyncio
    async def test_save_writes_flat_keys(self, profiles, auth, identity):
        await auth.login("ace@example.com", "hunter22")

        assert await profiles.save_profile(ProfileData("Ace", "Hi", OWN_AVATAR)) is True

        assert identity.records == {"DisplayName": "Ace", "Bio": "Hi", "AvatarUrl": OWN_AVATAR}
        assert profiles.success == "Profile updated successfully"

    @pytest.mark.asyncio
    async def test_save_requires_login(self, profiles):
        assert await profiles.save_profile(ProfileData("Ace")) is False
        assert profiles.error == "You must be logged in to update your profile"

    @pytest.mark.asyncio
    async def test_save_failure(self, profiles, auth, identity):
        await auth.login("ace@example.com", "hunter22")
        identity.fail_updates = True

        assert await profiles.save_profile(ProfileData("Ace")) is False
        assert profiles.error == "Failed to update profile"

    @pytest.mark.asyncio
    async def test_upload_rejects_non_image(self, profiles, storage):
        assert await profiles.upload_avatar(b"%PDF", "cv.pdf", "application/pdf") is None
        assert profiles.error == "Please select an image file (JPEG, PNG, etc.)"
        storage.upload_image.assert_not_called()

    @pytest.mark.asyncio
    async def test_upload_rejects_large_image(self, profiles, storage):
        assert await profiles.upload_avatar(b"x" * (MAX_AVATAR_BYTES + 1), "big.png", "image/png") is None
        assert profiles.error == "Image size must be less than 2MB"
        storage.upload_image.assert_not_called()

    @pytest.mark.asyncio
    async def test_upload_failure_message(self, profiles, storage):
        storage.upload_image.return_value = None

        assert await profiles.upload_avatar(b"x", "me.png", "image/png") is None
        assert profiles.error == "Failed to upload image. Please try again."

    @pytest.mark.asyncio
    async def test_replace_deletes_own_previous_avatar(self, profiles, storage):
        profile = ProfileData("Ace", avatar_url=OWN_AVATAR)

        assert await profiles.replace_avatar(profile, b"x", "new.png", "image/png") == NEW_AVATAR

        assert profile.avatar_url == NEW_AVATAR
        storage.delete_blob.assert_awaited_once_with(OWN_AVATAR)

    @pytest.mark.asyncio
    async def test_replace_keeps_foreign_avatar(self, profiles, storage):
        profile = ProfileData("Ace", avatar_url="https://gravatar.example/ace.png")

        await profiles.replace_avatar(profile, b"x", "new.png", "image/png")

        storage.delete_blob.assert_not_called()

    def test_placeholder(self):
        assert avatar_or_placeholder("") == PLACEHOLDER_AVATAR_URL
        assert avatar_or_placeholder(OWN_AVATAR) == OWN_AVATAR


@pytest.fixture
def queue():
    queue = MagicMock()
    queue.enqueue_player_data_operation = AsyncMock(return_value=True)
    return queue


class TestDataIntegrationService:
    """Test suite for DataIntegrationService."""

    @pytest.mark.asyncio
    async def test_sync_writes_record_then_enqueues(self, identity, auth, queue):
        await auth.login("ace@example.com", "hunter22")
        service = DataIntegrationService(identity, queue)

        assert await service.sync_player_data("PLAYER1", {"Title": "Champion", "Stats": {"wins": 3}}) is True

        assert identity.records == {"Title": "Champion", "Stats": json.dumps({"wins": 3})}
        queue.enqueue_player_data_operation.assert_awaited_once_with(
            "update", "PLAYER1", {"Title": "Champion", "Stats": {"wins": 3}}
        )

    @pytest.mark.asyncio
    async def test_sync_without_session_does_not_enqueue(self, identity, queue):
        service = DataIntegrationService(identity, queue)

        assert await service.sync_player_data("PLAYER1", {"Title": "x"}) is False
        queue.enqueue_player_data_operation.assert_not_called()

    @pytest.mark.asyncio
    async def test_sync_record_failure_does_not_enqueue(self, identity, auth, queue):
        await auth.login("ace@example.com", "hunter22")
        identity.fail_updates = True
        service = DataIntegrationService(identity, queue)

        assert await service.sync_player_data("PLAYER1", {"Title": "x"}) is False
        queue.enqueue_player_data_operation.assert_not_called()

    @pytest.mark.asyncio
    async def test_delete_enqueues(self, identity, queue):
        service = DataIntegrationService(identity, queue)

        assert await service.delete_player_data("PLAYER1") is True
        queue.enqueue_player_data_operation.assert_awaited_once_with("delete", "PLAYER1")


@pytest.fixture
def documents():
    documents = MagicMock()
    documents.upsert_item = AsyncMock(side_effect=lambda item_id, item: {**item, "id": item_id})
    documents.read_item = AsyncMock(return_value={"id": "p1", "score": 9})
    documents.delete_item = AsyncMock(return_value=True)
    return documents


class TestWorker:
    """Test suite for the queued operation worker."""

    @pytest.mark.asyncio
    async def test_update_stamps_document(self, documents):
        result = await apply_player_operation(documents, {"operation": "update", "playerId": "p1", "data": {"score": 9}})

        assert result["score"] == 9
        assert result["id"] == "p1"
        assert "_lastUpdated" in result

    @pytest.mark.asyncio
    async def test_read_and_delete(self, documents):
        assert await apply_player_operation(documents, {"operation": "read", "playerId": "p1"}) == {"id": "p1", "score": 9}
        assert await apply_player_operation(documents, {"operation": "delete", "playerId": "p1"}) is True

    @pytest.mark.asyncio
    async def test_store_failure_raises(self, documents):
        documents.upsert_item.side_effect = None
        documents.upsert_item.return_value = None

        with pytest.raises(RuntimeError):
            await apply_player_operation(documents, {"operation": "create", "playerId": "p1", "data": {}})

    @pytest.mark.asyncio
    @pytest.mark.parametrize("message", [
        {"operation": "update", "data": {}},
        {"operation": "purge", "playerId": "p1"},
    ])
    async def test_invalid_messages_raise(self, documents, message):
        with pytest.raises(ValueError):
            await apply_player_operation(documents, message)

    def test_job_progress_reported(self, documents):
        job = MagicMock(meta={})
        services = MagicMock(documents=documents)

        with patch("gamecloud_toolkit.game.worker.get_current_job", return_value=job), \
                patch("gamecloud_toolkit.factory.create_services", return_value=services):
            assert process_player_operation({"operation": "delete", "playerId": "p1"}) is True

        assert job.meta == {"progress": "completed"}

    def test_job_failure_recorded_and_raised(self, documents):
        job = MagicMock(meta={})
        documents.delete_item.return_value = False
        services = MagicMock(documents=documents)

        with patch("gamecloud_toolkit.game.worker.get_current_job", return_value=job), \
                patch("gamecloud_toolkit.factory.create_services", return_value=services):
            with pytest.raises(RuntimeError):
                process_player_operation({"operation": "delete", "playerId": "p1"})

        assert job.meta["progress"] == "failed"
        assert "p1" in job.meta["error"]


    def test_jobs_share_resolved_secrets(self, monkeypatch):
        store = FakeSecretClient({"DocumentsKey": "service-key"})
        config = {"documents": {
            "url": "https://db.example.supabase.co",
            "credential": "@Provider(SecretUri=https://v.example/secrets/DocumentsKey/1)",
        }}
        monkeypatch.setattr("gamecloud_toolkit.game.worker._secret_cache", SecretCache())

        with patch("gamecloud_toolkit.game.worker.get_current_job", return_value=None), \
                patch("gamecloud_toolkit.factory.load_config_or_empty", return_value=config), \
                patch("gamecloud_toolkit.factory.GCPSecretClient.from_config", return_value=store), \
                patch("gamecloud_toolkit.clients.documents.create_client", return_value=MagicMock()) as connect:
            assert process_player_operation({"operation": "delete", "playerId": "p1"}) is True
            assert process_player_operation({"operation": "delete", "playerId": "p2"}) is True

        assert store.fetch_calls == ["DocumentsKey"]
        assert connect.call_count == 2
        connect.assert_called_with("https://db.example.supabase.co", "service-key")


class TestServiceWiring:
    """Test suite for create_services and create_player_session."""

    @pytest.mark.asyncio
    async def test_clients_share_one_resolver(self):
        store = FakeSecretClient({"StorageKey": "{}", "TitleId": "ABC12"})
        config = {
            "storage": {"credential": "@Provider(SecretUri=https://v.example/secrets/StorageKey/1)"},
            "identity": {"credential": "@Provider(SecretUri=https://v.example/secrets/TitleId/1)"},
        }

        services = create_services(config, secret_client=store)

        assert services.storage._resolver is services.identity._resolver
        assert await services.identity.ensure_ready() is True
        assert "TitleId" in services.cache
        assert store.fetch_calls == ["TitleId"]
        await services.aclose()

    def test_construction_does_no_work(self):
        store = FakeSecretClient()
        services = create_services({}, secret_client=store)

        assert store.fetch_calls == []
        assert services.queue.state == "pending"

    def test_player_session_shares_identity(self):
        services = create_services({}, secret_client=FakeSecretClient())
        session = create_player_session(services, auto_save=False)

        assert session.auth.identity is services.identity
        assert session.game.store is services.identity
        assert session.game.auto_save is False
        assert session.integration.queue is services.queue

    @pytest.mark.asyncio
    async def test_literal_credentials_need_no_secret_store(self, temp_home):
        config_file = preferences.default_config_path()
        config_file.parent.mkdir(parents=True, exist_ok=True)
        config_file.write_text("identity:\n  credential: ABCD\n")

        services = create_services()

        assert services.identity.config.credential == "ABCD"
        assert await services.identity.ensure_ready() is True
        await services.aclose()
