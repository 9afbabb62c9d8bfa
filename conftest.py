"""
Common test fixtures.

Provides users, a group with active membership, a WebSocket application
wired the same way as production (JWT middleware + URL router), and a
clean presence registry for every test.
"""
import pytest
from django.contrib.auth.models import User
from rest_framework_simplejwt.tokens import AccessToken

from groups.models import Group, GroupMembership
from messaging.presence import get_presence_registry


@pytest.fixture(autouse=True)
def channel_layer():
    """A fresh in-memory channel layer per test; queues are bound to one event loop."""
    from channels.layers import channel_layers

    channel_layers.backends.clear()
    yield
    channel_layers.backends.clear()


@pytest.fixture(autouse=True)
def presence():
    """The process-wide presence registry, emptied around each test."""
    registry = get_presence_registry()
    registry.clear()
    yield registry
    registry.clear()


@pytest.fixture
def user(db):
    """Create a test user."""
    return User.objects.create_user(username="u1", password="pass12345", email="u1@example.com")


@pytest.fixture
def alice(db):
    return User.objects.create_user(username="alice", password="pass12345", email="alice@example.com")


@pytest.fixture
def bob(db):
    return User.objects.create_user(username="bob", password="pass12345", email="bob@example.com")


@pytest.fixture
def carol(db):
    return User.objects.create_user(username="carol", password="pass12345", email="carol@example.com")


@pytest.fixture
def group(alice, bob):
    """Group created by alice with bob as an active member."""
    grp = Group.objects.create(name="Team", created_by=alice)
    GroupMembership.objects.create(group=grp, user=bob)
    return grp


@pytest.fixture
def access_token():
    """Build a SimpleJWT access token for a user."""
    def _make(u):
        return str(AccessToken.for_user(u))
    return _make


@pytest.fixture
def ws_application():
    """WebSocket stack as mounted by chat_backend.asgi, minus the origin check."""
    from channels.routing import URLRouter

    from chat_backend.routing import websocket_urlpatterns
    from common.channels_jwt_auth import JWTAuthMiddlewareStack

    return JWTAuthMiddlewareStack(URLRouter(websocket_urlpatterns))
