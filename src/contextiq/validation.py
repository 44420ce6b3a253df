"""
Input validation for URLs and file uploads.
"""

from __future__ import annotations

import ipaddress
from typing import Iterable
from urllib.parse import urlparse

from .errors import InvalidUrlError, SizeExceededError, UnsupportedTypeError

ALLOWED_SCHEMES = ("http", "https")
MAX_URL_LENGTH = 2048
BLOCKED_HOSTS = ("localhost", "0.0.0.0", "169.254.169.254")  # includes cloud metadata endpoint


def validate_url(url: str, *, allow_private_hosts: bool = True) -> str:
    """
    Validate a URL for fetching. No network activity happens here.

    Args:
        url: Candidate URL as typed by the user
        allow_private_hosts: When False, loopback/private/link-local targets are refused

    Returns:
        The stripped URL

    Raises:
        InvalidUrlError: If the URL is malformed, too long or not http(s)
    """
    url = (url or "").strip()
    if not url:
        raise InvalidUrlError("Please enter a valid URL")

    if len(url) > MAX_URL_LENGTH:
        raise InvalidUrlError(f"URL exceeds maximum length of {MAX_URL_LENGTH}")

    try:
        parsed = urlparse(url)
        hostname = parsed.hostname
    except ValueError as e:
        raise InvalidUrlError(f"Invalid URL format: {e}") from e

    if parsed.scheme.lower() not in ALLOWED_SCHEMES:
        raise InvalidUrlError("Please enter a valid URL (include http:// or https://)")

    if not hostname:
        raise InvalidUrlError("Please enter a valid URL (missing host name)")

    if not allow_private_hosts and _is_private_host(hostname):
        raise InvalidUrlError(f"Private or local addresses are not allowed: {hostname}")

    return url


def check_upload_size(size: int, max_bytes: int) -> None:
    """Raise SizeExceededError if ``size`` exceeds ``max_bytes``."""
    if size > max_bytes:
        raise SizeExceededError(size, max_bytes)


def check_extension(extension: str, allowed: Iterable[str], rejected: Iterable[str]) -> None:
    """Raise UnsupportedTypeError unless ``extension`` is allowed and not a refused legacy format."""
    if extension in set(rejected):
        raise UnsupportedTypeError(
            extension,
            f"Legacy .{extension} files are not supported. "
            "Please save the document as .docx or .txt and try again.",
        )
    allowed_set = set(allowed)
    if extension not in allowed_set:
        supported = ", ".join(f".{ext}" for ext in sorted(allowed_set))
        raise UnsupportedTypeError(
            extension,
            f"File type not supported: .{extension}. Allowed: {supported}"
            if extension
            else f"File has no extension. Allowed: {supported}",
        )


def _is_private_host(hostname: str) -> bool:
    """Check if hostname is a local name or a private/loopback/link-local IP address."""
    if hostname.lower() in BLOCKED_HOSTS or hostname.lower().endswith(".localhost"):
        return True
    try:
        ip = ipaddress.ip_address(hostname)
    except ValueError:
        # Not an IP address
        return False
    return ip.is_private or ip.is_loopback or ip.is_link_local or ip.is_unspecified
