"""LAN helpers — local addresses and the CORS origin allow-list."""

import socket


def get_local_ips() -> list[str]:
    """Non-loopback IPv4 addresses of this host."""
    ips: set[str] = set()
    try:
        for info in socket.getaddrinfo(socket.gethostname(), None, socket.AF_INET):
            ips.add(info[4][0])
    except socket.gaierror:
        pass

    # The default-route address; no packet is sent for a UDP connect.
    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    try:
        sock.connect(("10.255.255.255", 1))
        ips.add(sock.getsockname()[0])
    except OSError:
        pass
    finally:
        sock.close()

    return sorted(ip for ip in ips if not ip.startswith("127."))


def allowed_origins(port: int, extra: list[str] | None = None, ips: list[str] | None = None) -> list[str]:
    if ips is None:
        ips = get_local_ips()
    origins = [f"http://{ip}:{port}" for ip in ips]
    origins.append(f"http://localhost:{port}")
    origins.append(f"http://127.0.0.1:{port}")
    for origin in extra or []:
        if origin not in origins:
            origins.append(origin)
    return origins
