"""Gateway commands."""

import json
import sys
from pathlib import Path

from mintcache.cli.console import get_console
from mintcache.cli.util.bootstrap import load_config
from mintcache.domain.gateway import GatewayResolver, extract_content_id
from mintcache.domain.shared.error import ConfigurationError, ImageNotFoundError


def resolve(metadata: str, *, token_uri: str | None = None, config: Path | None = None) -> None:
    """Print the URL a token's media would be fetched from.

    Args:
        metadata: Token metadata as JSON.
        token_uri: Token URI, used when the metadata has no image.
        config: YAML config file (for the gateway settings).
    """
    console = get_console()
    try:
        settings = load_config(config)
    except ConfigurationError as e:
        console.error(e.message)
        sys.exit(1)
    resolver = GatewayResolver(settings.gateway.root, settings.gateway.known_gateways)

    try:
        decoded = json.loads(metadata)
    except ValueError:
        decoded = metadata

    try:
        url = resolver.resolve(decoded, token_uri)
    except ImageNotFoundError as e:
        console.error(e.message, hint="The token would be abandoned")
        sys.exit(1)

    console.print(url)
    content_id = extract_content_id(url)
    if content_id:
        console.info(f"content id: {content_id}")
