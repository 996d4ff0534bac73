import threading

import pytest

from uisuites.framework.exceptions import UninitializedSessionError
from uisuites.framework.models import Session
from uisuites.framework.session_registry import SessionRegistry
from uisuites.unit.fakes import FakeFrame, FakePage, FakePlaywright


class FakeIdentity:
    """Stands in for threading.get_ident; switch ``current`` to impersonate a thread."""

    def __init__(self, current="T1"):
        self.current = current

    def __call__(self):
        return self.current


@pytest.fixture
def identity():
    return FakeIdentity()


@pytest.fixture
def registry(identity):
    return SessionRegistry(identity=identity)


def test_get_active_page_without_session_raises(registry):
    with pytest.raises(UninitializedSessionError):
        registry.get_active_page()
    with pytest.raises(UninitializedSessionError):
        registry.get_active_frame()
    with pytest.raises(UninitializedSessionError):
        registry.get_session()


def test_set_active_page_resets_frame(registry):
    world = FakePlaywright()
    first, second = FakePage(world), FakePage(world)

    registry.set_active_page(first)
    assert registry.get_active_frame() is first.main_frame

    child = FakeFrame("frame-top")
    registry.set_active_frame(child)
    assert registry.get_active_frame() is child

    registry.set_active_page(second)
    assert registry.get_active_page() is second
    assert registry.get_active_frame() is second.main_frame


def test_set_active_frame_none_returns_to_main_frame(registry):
    page = FakePage(FakePlaywright())
    registry.set_active_page(page)
    registry.set_active_frame(FakeFrame("frame-bottom"))

    registry.set_active_frame(None)

    assert registry.get_active_frame() is page.main_frame


def test_set_active_frame_requires_page(registry):
    with pytest.raises(UninitializedSessionError):
        registry.set_active_frame(FakeFrame("orphan"))


def test_entries_are_partitioned_by_identity(registry, identity):
    world = FakePlaywright()
    page_one, page_two = FakePage(world), FakePage(world)

    identity.current = "T1"
    registry.set_active_page(page_one)
    identity.current = "T2"
    registry.set_active_page(page_two)

    assert registry.get_active_page() is page_two
    identity.current = "T1"
    assert registry.get_active_page() is page_one

    identity.current = "T2"
    registry.clear()
    assert not registry.has_session()
    identity.current = "T1"
    assert registry.get_active_page() is page_one
    assert registry.owners() == ["T1"]


def test_clear_is_idempotent(registry):
    registry.set_active_page(FakePage(FakePlaywright()))

    registry.clear()
    registry.clear()

    assert len(registry) == 0
    with pytest.raises(UninitializedSessionError):
        registry.get_active_page()


def test_register_binds_session_to_caller(registry, identity):
    page = FakePage(FakePlaywright())
    session = Session(owner="someone-else", test_name="test_a", page=page, frame=FakeFrame("stale"))

    registry.register(session)

    assert session.owner == identity.current
    assert registry.get_session() is session
    assert registry.get_active_frame() is page.main_frame


def test_default_identity_is_the_thread():
    registry = SessionRegistry()
    world = FakePlaywright()
    seen = {}
    all_registered = threading.Barrier(3)

    def worker(name):
        page = FakePage(world)
        registry.set_active_page(page)
        all_registered.wait(timeout=5)
        seen[name] = registry.get_active_page() is page

    threads = [threading.Thread(target=worker, args=(f"w{i}",)) for i in range(3)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert seen == {"w0": True, "w1": True, "w2": True}
    assert len(registry) == 3
    assert not registry.has_session()
