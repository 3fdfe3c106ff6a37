"""Shared fixtures: settings, in-memory MongoDB, repositories and an API client."""

from collections.abc import Iterator
from typing import Any

import pytest
from fastapi.testclient import TestClient

from src.auth.models import UserRepository
from src.auth.security import TokenService
from src.auth.service import AuthService
from src.comments.models import CommentRepository
from src.comments.service import CommentService
from src.config.settings import Settings
from src.main import create_app
from src.posts.models import PostRepository
from src.posts.service import PostService
from tests.fakes import FakeDatabase


@pytest.fixture
def settings() -> Settings:
    """Settings for the testing environment (no Redis, no log files)."""
    return Settings(
        environment="testing",
        mongo_uri="mongodb://localhost:27017",
        mongo_database="agora_test",
        jwt_secret="test-secret-key",
        jwt_expire="30d",
        redis_enabled=False,
        log_file_enabled=False,
        log_requests=False,
        log_level="WARNING",
    )


@pytest.fixture
def database() -> Any:
    """Fresh in-memory database per test."""
    return FakeDatabase("agora_test")


@pytest.fixture
def users(database: Any) -> UserRepository:
    return UserRepository(database)


@pytest.fixture
def posts(database: Any) -> PostRepository:
    return PostRepository(database)


@pytest.fixture
def comments(database: Any) -> CommentRepository:
    return CommentRepository(database)


@pytest.fixture
def tokens(settings: Settings) -> TokenService:
    return TokenService(settings.jwt_secret, expires_in=settings.jwt_expire)


@pytest.fixture
def auth_service(users: UserRepository, tokens: TokenService) -> AuthService:
    return AuthService(users=users, tokens=tokens)


@pytest.fixture
def post_service(
    posts: PostRepository, comments: CommentRepository, users: UserRepository
) -> PostService:
    return PostService(posts=posts, comments=comments, users=users)


@pytest.fixture
def comment_service(
    comments: CommentRepository, posts: PostRepository, users: UserRepository
) -> CommentService:
    return CommentService(comments=comments, posts=posts, users=users)


@pytest.fixture
def client(settings: Settings, database: Any) -> Iterator[TestClient]:
    """API client over the in-memory database (lifespan runs)."""
    app = create_app(settings=settings, database=database)
    with TestClient(app) as test_client:
        yield test_client
