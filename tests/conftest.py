import keyring
import pytest
import requests
from keyring.backend import KeyringBackend
from keyring.errors import PasswordDeleteError

from bloggr.api_interface import RealAPI
from bloggr.data_models import User
from bloggr.session import SessionStore
from bloggr.storage import KeyringStorage
from bloggr.ui import RecordingNotifier, Router

from .fake_server import TOKEN, FakeJsonServer

BASE_URL = "http://blog.test"


class MemoryKeyring(KeyringBackend):
    """Keyring backend that lives in a dict, so tests never touch the OS store."""

    priority = 1

    def __init__(self):
        super().__init__()
        self.entries = {}

    def get_password(self, service, username):
        return self.entries.get((service, username))

    def set_password(self, service, username, password):
        self.entries[(service, username)] = password

    def delete_password(self, service, username):
        try:
            del self.entries[(service, username)]
        except KeyError:
            raise PasswordDeleteError(username)


@pytest.fixture(autouse=True)
def memory_keyring():
    backend = MemoryKeyring()
    keyring.set_keyring(backend)
    return backend


@pytest.fixture
def server():
    return FakeJsonServer()


@pytest.fixture
def http(server):
    s = requests.Session()
    s.mount(BASE_URL, server)
    return s


@pytest.fixture
def storage():
    return KeyringStorage(service="bloggr-test")


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def router():
    return Router()


@pytest.fixture
def session(storage):
    return SessionStore(storage).start()


@pytest.fixture
def api(storage, http):
    return RealAPI(BASE_URL, storage=storage, session=http)


@pytest.fixture
def deps(api, session, notifier, router):
    return api, session, notifier, router


@pytest.fixture
def login_as(server, session):
    """Log the session in as one of the seeded users."""

    def _login(user_id):
        session.login(User.from_dict(server.find("users", user_id)), TOKEN)
        return session.current_user

    return _login
