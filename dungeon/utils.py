# RayCrawler/dungeon/utils.py
import os
import socket
from io import BytesIO
from typing import Callable, List, Optional

import netifaces
import pygame
import qrcode

LOOPBACK = '127.0.0.1'


def _usable(ip: Optional[str]) -> bool:
    return bool(ip) and not ip.startswith('127.')


def _ip_from_env() -> Optional[str]:
    # Static override for containers and odd network setups
    return os.environ.get('SERVER_IP') or None


def _ip_from_route() -> Optional[str]:
    # Connecting a UDP socket only picks a route; nothing is sent
    try:
        with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as s:
            s.connect(('8.8.8.8', 80))
            ip = s.getsockname()[0]
    except OSError:
        return None
    return ip if _usable(ip) else None


def _ip_from_interfaces() -> Optional[str]:
    try:
        for iface in netifaces.interfaces():
            for addr in netifaces.ifaddresses(iface).get(netifaces.AF_INET, []):
                ip = addr.get('addr')
                if _usable(ip):
                    return ip
    except (OSError, ValueError):
        return None
    return None


_IP_SOURCES: List[Callable[[], Optional[str]]] = [_ip_from_env, _ip_from_route, _ip_from_interfaces]


def get_local_ip() -> str:
    """LAN address phones should use to reach the controller page."""
    for source in _IP_SOURCES:
        ip = source()
        if ip:
            return ip
    return LOOPBACK


def controller_url(port: int = 5050) -> str:
    return f"http://{get_local_ip()}:{port}/controller"


def generate_qr_surface(url: str, size: int = 180) -> 'pygame.Surface':
    img = qrcode.make(url)
    buf = BytesIO()
    img.save(buf, format='PNG')
    buf.seek(0)
    return pygame.transform.scale(pygame.image.load(buf, 'qr.png'), (size, size))
