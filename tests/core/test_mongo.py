"""Tests for the MongoDB connection lifecycle."""

from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient
from pymongo.errors import ServerSelectionTimeoutError

from src.config.settings import Settings
from src.core.database import mongo as mongo_module
from src.core.database.mongo import MongoConnection
from src.main import create_app


@pytest.fixture
def motor_clients(monkeypatch: pytest.MonkeyPatch) -> list[MagicMock]:
    """Replace the motor client class; collects every client created."""
    created: list[MagicMock] = []

    def factory(*args: Any, **kwargs: Any) -> MagicMock:
        client = MagicMock(name="AsyncIOMotorClient")
        client.admin.command = AsyncMock(return_value={"ok": 1.0})
        client.init_args = (args, kwargs)
        created.append(client)
        return client

    monkeypatch.setattr(mongo_module, "AsyncIOMotorClient", factory)
    return created


class TestMongoConnection:
    """Connection state lives on the instance."""

    @pytest.mark.asyncio
    async def test_connect_uses_settings(
        self, settings: Settings, motor_clients: list[MagicMock]
    ) -> None:
        connection = MongoConnection(settings)

        database = await connection.connect()

        client = motor_clients[0]
        args, kwargs = client.init_args
        assert args == (settings.mongo_uri,)
        assert kwargs["tz_aware"] is True
        client.admin.command.assert_awaited_once_with("ping")
        client.__getitem__.assert_called_once_with("agora_test")
        assert database is connection.database
        assert connection.is_connected

    @pytest.mark.asyncio
    async def test_connect_is_idempotent(
        self, settings: Settings, motor_clients: list[MagicMock]
    ) -> None:
        connection = MongoConnection(settings)

        first = await connection.connect()
        second = await connection.connect()

        assert first is second
        assert len(motor_clients) == 1

    @pytest.mark.asyncio
    async def test_instances_are_independent(
        self, settings: Settings, motor_clients: list[MagicMock]
    ) -> None:
        one = MongoConnection(settings)
        other = MongoConnection(settings)

        await one.connect()
        one.close()

        assert not one.is_connected
        assert one.client is None
        assert not other.is_connected
        assert len(motor_clients) == 1
        motor_clients[0].close.assert_called_once()

    @pytest.mark.asyncio
    async def test_failed_ping_closes_client(
        self, settings: Settings, motor_clients: list[MagicMock], monkeypatch
    ) -> None:
        def failing(*args: Any, **kwargs: Any) -> MagicMock:
            client = MagicMock()
            client.admin.command = AsyncMock(
                side_effect=ServerSelectionTimeoutError("no servers")
            )
            motor_clients.append(client)
            return client

        monkeypatch.setattr(mongo_module, "AsyncIOMotorClient", failing)
        connection = MongoConnection(settings)

        with pytest.raises(ConnectionError):
            await connection.connect()

        motor_clients[0].close.assert_called_once()
        assert not connection.is_connected


class TestAppLifespan:
    """The app builds, stores and closes its own connection."""

    def test_lifespan_owns_connection(
        self,
        settings: Settings,
        motor_clients: list[MagicMock],
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        monkeypatch.setattr(mongo_module, "init_indexes", AsyncMock())
        app = create_app(settings=settings)

        with TestClient(app):
            connection = app.state.mongo
            assert isinstance(connection, MongoConnection)
            assert connection.settings is settings
            assert connection.is_connected

        assert not connection.is_connected
        motor_clients[0].close.assert_called_once()

    def test_injected_database_is_not_owned(self, client: TestClient) -> None:
        assert client.app.state.mongo is None
