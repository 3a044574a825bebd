import json
import os
import stat

from conftest import NOW
from storefront_server.storage import CookieStore, JsonFileStorage, MemoryStorage


def test_json_file_storage_survives_restart(tmp_path) -> None:
    path = str(tmp_path / "state.json")
    JsonFileStorage(path).set("cart", {"cartItems": [], "timestamp": 1})

    reloaded = JsonFileStorage(path)

    assert reloaded.get("cart") == {"cartItems": [], "timestamp": 1}


def test_json_file_storage_is_private(tmp_path) -> None:
    path = str(tmp_path / "state.json")
    JsonFileStorage(path).set("user", {"name": "Ada"})

    assert stat.S_IMODE(os.stat(path).st_mode) == 0o600


def test_json_file_storage_remove_rewrites_file(tmp_path) -> None:
    path = tmp_path / "state.json"
    storage = JsonFileStorage(str(path))
    storage.set("a", 1)
    storage.set("b", 2)

    storage.remove("a")

    assert json.loads(path.read_text()) == {"b": 2}


def test_corrupted_state_file_starts_empty(tmp_path) -> None:
    path = tmp_path / "state.json"
    path.write_text("{not json")

    assert JsonFileStorage(str(path)).get("cart") is None


def test_non_object_state_file_starts_empty(tmp_path) -> None:
    path = tmp_path / "state.json"
    path.write_text("[1, 2]")

    assert JsonFileStorage(str(path)).data == {}


def test_cookie_expires_at_absolute_time(clock) -> None:
    cookies = CookieStore(MemoryStorage(), clock=clock)

    expires = cookies.set("token", "abc", max_age=3600)

    assert expires == NOW + 3600
    assert cookies.expires_at("token") == NOW + 3600
    clock.advance(3599)
    assert cookies.get("token") == "abc"
    clock.advance(1)
    assert cookies.get("token") is None


def test_expired_cookie_is_dropped_from_storage(clock) -> None:
    storage = MemoryStorage()
    cookies = CookieStore(storage, clock=clock)
    cookies.set("token", "abc", max_age=10)
    cookies.set("theme", "dark", max_age=1000)

    clock.advance(11)
    cookies.get("token")

    assert set(storage.get("cookies")) == {"theme"}


def test_cookie_remove(clock) -> None:
    cookies = CookieStore(MemoryStorage(), clock=clock)
    cookies.set("token", "abc", max_age=60)

    cookies.remove("token")
    cookies.remove("token")

    assert cookies.get("token") is None
    assert cookies.expires_at("token") is None
