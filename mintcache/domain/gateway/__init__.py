"""Gateway resolution - pure mapping from token metadata to fetchable URLs."""

from mintcache.domain.gateway.content_id import extract_content_id
from mintcache.domain.gateway.resolver import (
    DEFAULT_GATEWAYS,
    GatewayResolver,
    decode_metadata,
    is_inline_payload,
)

__all__ = [
    "DEFAULT_GATEWAYS",
    "GatewayResolver",
    "decode_metadata",
    "extract_content_id",
    "is_inline_payload",
]
