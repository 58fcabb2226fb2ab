"""Tests for the LAN origin allow-list."""

from lan import allowed_origins, get_local_ips


def test_allowed_origins_for_known_ips():
    origins = allowed_origins(3000, ips=["192.168.1.20", "10.0.0.7"])

    assert origins == [
        "http://192.168.1.20:3000",
        "http://10.0.0.7:3000",
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]


def test_extra_origins_are_appended_once():
    origins = allowed_origins(8080, extra=["http://classroom.local:8080", "http://localhost:8080"], ips=[])

    assert origins == [
        "http://localhost:8080",
        "http://127.0.0.1:8080",
        "http://classroom.local:8080",
    ]


def test_local_ips_exclude_loopback():
    assert all(not ip.startswith("127.") for ip in get_local_ips())
