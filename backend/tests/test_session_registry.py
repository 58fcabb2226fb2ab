"""Tests for the session registry."""

from concurrent.futures import ThreadPoolExecutor
from datetime import timedelta
from pathlib import Path

import pytest

from api.sessions.dto.session import ResolveOutcome
from api.sessions.services.code_generator import CodeSpaceExhausted, is_valid_code


def test_create_returns_fresh_code(registry, stored_file):
    code = registry.create(stored_file(), "slides.pdf", 2048576, "application/pdf")

    assert is_valid_code(code)
    assert len(registry) == 1


def test_resolve_is_repeatable_within_ttl(registry, stored_file, clock):
    code = registry.create(stored_file(), "slides.pdf", 2048576, "application/pdf")

    first = registry.resolve(code)
    clock.advance(300)
    second = registry.resolve(code)

    assert first.outcome is ResolveOutcome.OK
    assert first.view == second.view
    assert first.view.name == "slides.pdf"
    assert first.view.size == 2048576
    assert first.view.mime_type == "application/pdf"


def test_expired_then_not_found(registry, stored_file, storage, clock):
    handle = stored_file()
    code = registry.create(handle, "slides.pdf", 2048576, "application/pdf")
    assert registry.resolve(code).ok

    clock.advance(601)

    assert registry.resolve(code).outcome is ResolveOutcome.EXPIRED
    assert not storage.exists(handle)
    assert registry.resolve(code).outcome is ResolveOutcome.NOT_FOUND


def test_expiry_boundary_is_inclusive(registry, stored_file, clock):
    code = registry.create(stored_file(), "slides.pdf", 10, "application/pdf")

    clock.advance(599)
    assert registry.resolve(code).ok

    clock.advance(1)
    assert registry.resolve(code).outcome is ResolveOutcome.EXPIRED


def test_pin_gate(registry, stored_file):
    code = registry.create(stored_file("1_notes.png"), "notes.png", 1024, "image/png", pin="1234")

    assert registry.resolve(code).outcome is ResolveOutcome.PIN_REQUIRED
    assert registry.resolve(code, pin="").outcome is ResolveOutcome.PIN_REQUIRED
    assert registry.resolve(code, pin="0000").outcome is ResolveOutcome.PIN_REQUIRED
    assert registry.resolve(code, pin="1234").ok


def test_pin_is_case_sensitive(registry, stored_file):
    code = registry.create(stored_file(), "a.pdf", 10, "application/pdf", pin="AbC")

    assert registry.resolve(code, pin="abc").outcome is ResolveOutcome.PIN_REQUIRED
    assert registry.resolve(code, pin="AbC").ok


def test_empty_pin_means_no_gate(registry, stored_file):
    code = registry.create(stored_file(), "a.pdf", 10, "application/pdf", pin="")

    assert registry.resolve(code).ok


def test_pin_failure_does_not_evict(registry, stored_file, storage):
    handle = stored_file()
    code = registry.create(handle, "a.pdf", 10, "application/pdf", pin="1234")

    for _ in range(5):
        registry.resolve(code, pin="9999")

    assert len(registry) == 1
    assert storage.exists(handle)


def test_expired_takes_precedence_over_pin(registry, stored_file, clock):
    code = registry.create(stored_file(), "a.pdf", 10, "application/pdf", pin="1234")
    clock.advance(601)

    assert registry.resolve(code, pin="wrong").outcome is ResolveOutcome.EXPIRED


def test_missing_file_is_gone_and_evicted(registry, stored_file, storage):
    handle = stored_file()
    code = registry.create(handle, "a.pdf", 10, "application/pdf", pin="1234")
    storage.path_for(handle).unlink()

    assert registry.resolve(code, pin="wrong").outcome is ResolveOutcome.GONE
    assert registry.resolve(code).outcome is ResolveOutcome.NOT_FOUND
    assert len(registry) == 0


@pytest.mark.parametrize("code", [None, "", "12345", "abcdef", "1234567"])
def test_malformed_code(registry, code):
    assert registry.resolve(code).outcome is ResolveOutcome.INVALID_CODE


def test_unknown_code(registry):
    assert registry.resolve("123456").outcome is ResolveOutcome.NOT_FOUND


def test_resolve_marks_downloaded(registry, stored_file):
    code = registry.create(stored_file(), "a.pdf", 10, "application/pdf", pin="1234")

    registry.resolve(code)
    assert registry.get_stats()["downloaded_sessions"] == 0

    registry.resolve(code, pin="1234")
    assert registry.get_stats() == {
        "active_sessions": 1,
        "downloaded_sessions": 1,
        "total_storage": 10,
    }


def test_sweep_evicts_only_expired(registry, stored_file, storage, clock):
    old_handle = stored_file("1_old.pdf")
    old = registry.create(old_handle, "old.pdf", 10, "application/pdf")
    clock.advance(300)
    new_handle = stored_file("2_new.pdf")
    new = registry.create(new_handle, "new.pdf", 10, "application/pdf")

    clock.advance(301)
    evicted = registry.sweep_expired(clock())

    assert evicted == 1
    assert not storage.exists(old_handle)
    assert storage.exists(new_handle)
    assert registry.resolve(old).outcome is ResolveOutcome.NOT_FOUND
    assert registry.resolve(new).ok


def test_sweep_with_explicit_time(registry, stored_file, clock):
    registry.create(stored_file(), "a.pdf", 10, "application/pdf")

    assert registry.sweep_expired(clock()) == 0
    assert registry.sweep_expired(clock.now.replace(year=2027)) == 1


def test_sweep_tolerates_already_deleted_file(registry, stored_file, storage, clock):
    handle = stored_file()
    registry.create(handle, "a.pdf", 10, "application/pdf")
    storage.path_for(handle).unlink()
    clock.advance(601)

    assert registry.sweep_expired() == 1


def test_sweep_and_lazy_eviction_delete_once(registry, stored_file, storage, clock, monkeypatch):
    handle = stored_file()
    code = registry.create(handle, "a.pdf", 10, "application/pdf")
    clock.advance(601)

    deletions = []
    original_delete = storage.delete
    monkeypatch.setattr(storage, "delete", lambda h: deletions.append(h) or original_delete(h))

    assert registry.sweep_expired() == 1
    assert registry.resolve(code).outcome is ResolveOutcome.NOT_FOUND
    assert registry.sweep_expired() == 0
    assert deletions == [handle]


def test_delete_failure_still_evicts(registry, stored_file, storage, clock, monkeypatch):
    handle = stored_file()
    code = registry.create(handle, "a.pdf", 10, "application/pdf")
    clock.advance(601)

    def deny(self, missing_ok=False):
        raise PermissionError("read-only filesystem")

    monkeypatch.setattr(Path, "unlink", deny)

    assert registry.resolve(code).outcome is ResolveOutcome.EXPIRED
    assert registry.resolve(code).outcome is ResolveOutcome.NOT_FOUND


def test_concurrent_creates_never_share_a_code(registry):
    def create(i):
        return registry.create(f"{i}_file.pdf", "file.pdf", 1, "application/pdf")

    with ThreadPoolExecutor(max_workers=32) as pool:
        codes = list(pool.map(create, range(1000)))

    assert len(set(codes)) == 1000
    assert len(registry) == 1000


def test_concurrent_resolves_of_expired_session(registry, stored_file, storage, clock):
    handle = stored_file()
    code = registry.create(handle, "a.pdf", 10, "application/pdf")
    clock.advance(601)

    with ThreadPoolExecutor(max_workers=16) as pool:
        outcomes = list(pool.map(lambda _: registry.resolve(code).outcome, range(64)))

    assert outcomes.count(ResolveOutcome.EXPIRED) == 1
    assert outcomes.count(ResolveOutcome.NOT_FOUND) == 63
    assert not storage.exists(handle)


def test_code_space_exhaustion_propagates(storage, clock):
    from api.sessions.repositories.session_registry import SessionRegistry

    def exhausted(is_taken):
        raise CodeSpaceExhausted("full")

    registry = SessionRegistry(storage, clock=clock, code_generator=exhausted)

    with pytest.raises(CodeSpaceExhausted):
        registry.create("h", "a.pdf", 1, "application/pdf")
    assert len(registry) == 0


def test_owned_handles(registry):
    registry.create("1_a.pdf", "a.pdf", 1, "application/pdf")
    registry.create("2_b.pdf", "b.pdf", 1, "application/pdf")

    assert registry.owned_handles() == {"1_a.pdf", "2_b.pdf"}


def test_expires_at_reports_stored_expiry(registry, clock):
    code = registry.create("1_a.pdf", "a.pdf", 1, "application/pdf")
    created = clock()
    clock.advance(120)

    assert registry.expires_at(code) == created + timedelta(seconds=600)
    assert registry.expires_at("123456") is None
