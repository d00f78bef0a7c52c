"""Metadata-to-URL resolution and gateway rewriting.

Everything here is pure: no I/O, deterministic, and rewriting an
already-rewritten URL leaves it unchanged.
"""

import json
import re
from collections.abc import Sequence
from typing import Any
from urllib.parse import urlsplit

from mintcache.domain.shared.error import ImageNotFoundError
from mintcache.domain.token.model import INVALID_METADATA

# Public gateways whose paths are re-served through our own gateway root
DEFAULT_GATEWAYS: tuple[str, ...] = (
    "https://gateway.pinata.cloud/ipfs/",
    "https://nftstorage.link/ipfs/",
    "https://kitchen.mypinata.cloud/ipfs/",
    "https://ipfs.io/ipfs/",
    "https://cloudflare-ipfs.com/ipfs/",
)

# Audio/video containers we never try to transcode
BLOCKED_EXTENSIONS = frozenset({"mp4", "avi", "mpeg", "mov", "webm", "mkv", "mp3", "wav"})

MISSING_TOKEN_URI = "___MISSING_TOKEN_URI___"

MIN_REFERENCE_LENGTH = 5

_IPFS_PREFIXES = ("ipfs://ipfs/", "ipfs://", "ipfs/")

_BASE64 = re.compile(
    r"^(?:[A-Za-z0-9+/]{4})*(?:[A-Za-z0-9+/]{4}|[A-Za-z0-9+/]{3}=|[A-Za-z0-9+/]{2}==)$"
)


def is_inline_payload(value: str) -> bool:
    """True for data: URIs and bare base64 blobs embedded in metadata."""
    if value.startswith("data:"):
        return True
    return len(value) > 96 and _BASE64.match(value) is not None


def decode_metadata(metadata: Any) -> Any:
    """Decode metadata stored as JSON text; invalid or sentinel values become None."""
    if isinstance(metadata, str):
        if metadata == INVALID_METADATA:
            return None
        try:
            metadata = json.loads(metadata)
        except ValueError:
            return None
        if metadata == INVALID_METADATA:
            return None
    return metadata


def _text(value: Any) -> str | None:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _from_field(field: Any) -> str | None:
    """Pull an image reference out of an ``image`` field of any known shape."""
    if isinstance(field, str):
        return _text(field)
    if not isinstance(field, dict):
        return None

    inner = field.get("image")
    if _text(inner):
        return _text(inner)
    if isinstance(inner, dict):
        description = _text(inner.get("description"))
        if description and description.startswith(("ipfs://", "http")):
            return description

    return _text(field.get("description"))


def _present(field: Any) -> bool:
    if isinstance(field, str):
        return bool(field.strip())
    return isinstance(field, (dict, list)) or bool(field)


def _image_field(metadata: Any) -> Any:
    """``metadata.image``, or ``metadata.properties.image`` when that is absent or empty."""
    if not isinstance(metadata, dict):
        return None
    field = metadata.get("image")
    if not _present(field) and isinstance(metadata.get("properties"), dict):
        field = metadata["properties"].get("image")
    return field


def _from_token_uri(token_uri: str | None) -> str | None:
    uri = _text(token_uri)
    if uri is None:
        return None
    extension = urlsplit(uri).path.rsplit(".", 1)[-1].lower()
    if uri == MISSING_TOKEN_URI or extension in BLOCKED_EXTENSIONS:
        raise ImageNotFoundError(f"Token URI is not an image: {uri}")
    return uri


class GatewayResolver:
    """Maps untrusted token metadata onto a canonical fetchable URL.

    Selection order:
        1. ``metadata.image`` (falling back to ``metadata.properties.image``),
           accepting a plain string, ``{image: str}``,
           ``{image: {description: url}}`` or ``{description: str}``.
        2. The token URI, only when there is no image field at all, and
           unless it points at an audio/video container or is the
           missing-URI marker.

    The chosen reference is then rewritten so content-addressed media is
    served through ``gateway_root``.
    """

    def __init__(
        self,
        gateway_root: str,
        known_gateways: Sequence[str] = DEFAULT_GATEWAYS,
    ) -> None:
        self._root = gateway_root.rstrip("/")
        self._gateways = tuple(known_gateways)

    @property
    def gateway_root(self) -> str:
        return self._root

    def resolve(self, metadata: Any, token_uri: str | None = None) -> str:
        """Resolve metadata to a URL.

        Raises:
            ImageNotFoundError: If no usable image reference exists.
        """
        return self.rewrite(self.select_reference(metadata, token_uri))

    def select_reference(self, metadata: Any, token_uri: str | None = None) -> str:
        metadata = decode_metadata(metadata)

        field = _image_field(metadata)
        if _present(field):
            # An image field that yields nothing does not fall back to the token URI
            reference = _from_field(field)
        else:
            reference = _from_token_uri(token_uri)

        if reference is None or len(reference) < MIN_REFERENCE_LENGTH:
            raise ImageNotFoundError("No image found")
        return reference

    def rewrite(self, reference: str) -> str:
        url = reference.strip()

        for prefix in _IPFS_PREFIXES:
            if url.startswith(prefix):
                url = f"{self._root}/{url[len(prefix) :]}"
                break

        for gateway in self._gateways:
            if url.startswith(gateway):
                url = f"{self._root}/{url[len(gateway) :]}"

        url = self._rewrite_dstor(url)
        return self._rewrite_nftstorage_subdomain(url)

    @staticmethod
    def _rewrite_dstor(url: str) -> str:
        """``https://<node>.dstor.cloud/...`` -> ``https://api.dstor.cloud/...``."""
        parts = urlsplit(url)
        labels = (parts.hostname or "").split(".")
        if len(labels) < 3 or labels[-2:] != ["dstor", "cloud"] or labels[0] == "api":
            return url
        try:
            port = parts.port
        except ValueError:
            return url
        netloc = ".".join(["api", *labels[1:]])
        if port is not None:
            netloc = f"{netloc}:{port}"
        return parts._replace(netloc=netloc).geturl()

    def _rewrite_nftstorage_subdomain(self, url: str) -> str:
        """``https://<cid>.ipfs.nftstorage.link/<file>`` -> ``<root>/<cid>/<file>``."""
        parts = urlsplit(url)
        host = parts.hostname or ""
        if not host.endswith(".nftstorage.link"):
            return url
        cid = host.split(".")[0]
        segment = parts.path.lstrip("/").split("/")[0]
        if cid and segment:
            return f"{self._root}/{cid}/{segment}"
        return url
