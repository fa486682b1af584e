"""Tests for SessionService (create, append, export)."""

import asyncio
import itertools

import pytest

from contactdrop_service.exceptions import SessionFullError, SessionNotFoundError
from contactdrop_service.services.session_service import SessionService, new_session_id


pytestmark = pytest.mark.asyncio


async def test_create_session(session_service, store, clock):
    session = await session_service.create_session("Launch\x02party ", 90)
    assert session.name == "Launch party"
    assert session.expires_at == clock.now + 90 * 60_000
    assert session.contacts == []
    assert await store.read(session.id) == session


async def test_create_skips_taken_ids(store, clock):
    ids = itertools.chain(["taken001", "taken001"], ["fresh001"])
    svc = SessionService(store, id_factory=lambda: next(ids), clock=clock)

    first = await svc.create_session("One", 1)
    second = await svc.create_session("Two", 1)
    assert first.id == "taken001"
    assert second.id == "fresh001"
    assert (await store.read("taken001")).name == "One"


async def test_create_gives_up_when_ids_keep_colliding(store, clock):
    svc = SessionService(store, id_factory=lambda: "same0001", clock=clock)
    await svc.create_session("One", 1)
    with pytest.raises(RuntimeError):
        await svc.create_session("Two", 1)


async def test_add_contact_unknown_session(session_service):
    with pytest.raises(SessionNotFoundError):
        await session_service.add_contact("missing1", "A", "1")


async def test_add_contact_respects_limit(store, clock):
    svc = SessionService(store, contact_limit=2, clock=clock)
    session = await svc.create_session("Small", 5)
    await svc.add_contact(session.id, "A", "1")
    await svc.add_contact(session.id, "B", "2")
    with pytest.raises(SessionFullError):
        await svc.add_contact(session.id, "C", "3")
    assert len((await store.read(session.id)).contacts) == 2


async def test_concurrent_appends_are_all_kept(session_service, store):
    """Appends racing on one session are serialised, none are lost."""
    session = await session_service.create_session("Busy", 5)
    await asyncio.gather(*(
        session_service.add_contact(session.id, f"P{i}", str(i)) for i in range(25)
    ))

    stored = await store.read(session.id)
    assert len(stored.contacts) == 25
    assert sorted(c.name for c in stored.contacts) == sorted(f"P{i}" for i in range(25))
    # Lock table is empty once nobody is waiting
    assert len(session_service._locks) == 0


async def test_export_vcards(session_service):
    session = await session_service.create_session("Export", 5)
    await session_service.add_contact(session.id, "A", "1")
    vcf = await session_service.export_vcards(session.id)
    assert vcf == "BEGIN:VCARD\r\nVERSION:3.0\r\nFN:A\r\nTEL:1\r\nEND:VCARD\r\n"


async def test_export_unknown_session(session_service):
    assert await session_service.export_vcards("missing1") is None


async def test_new_session_id_shape():
    session_id = new_session_id()
    assert len(session_id) == 8
    assert all(c in "0123456789abcdef" for c in session_id)
