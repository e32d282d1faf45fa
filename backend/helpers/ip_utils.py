"""
IP address utilities for privacy compliance.

Provides IP anonymization for log lines and a non-reversible IP key for
the consent audit log (GDPR: the raw address is never stored).
"""

import hashlib
import ipaddress
from typing import Optional


def anonymize_ip(ip: Optional[str]) -> Optional[str]:
    """
    Anonymize an IP address for privacy-compliant logging.

    For IPv4: Zeros the last octet (e.g., 192.168.1.100 -> 192.168.1.0)
    For IPv6: Keeps the first 48 bits (e.g., 2001:db8:85a3::1 -> 2001:db8:85a3::)

    Args:
        ip: IP address string or None

    Returns:
        Anonymized IP address, the input unchanged if it is not an IP
        (e.g. "unknown"), or None if input is None
    """
    if ip is None:
        return None

    try:
        addr = ipaddress.ip_address(ip)
    except ValueError:
        # Not an IP address - return as-is (might be a placeholder key)
        return ip

    if isinstance(addr, ipaddress.IPv4Address):
        network = ipaddress.IPv4Network(f"{addr}/24", strict=False)
    else:
        network = ipaddress.IPv6Network(f"{addr}/48", strict=False)
    return str(network.network_address)


def is_valid_ip(ip: Optional[str]) -> bool:
    """
    Validate an IP address string.

    Args:
        ip: IP address string to validate

    Returns:
        True if valid IPv4 or IPv6 address, False otherwise
    """
    if ip is None:
        return False

    try:
        ipaddress.ip_address(ip)
        return True
    except ValueError:
        return False


def hash_ip(ip: str) -> str:
    """
    Derive a non-reversible storage key from an IP address.

    Args:
        ip: Client IP (or the "unknown" placeholder)

    Returns:
        First 16 hex characters of the SHA-256 digest
    """
    return hashlib.sha256(ip.encode("utf-8")).hexdigest()[:16]
