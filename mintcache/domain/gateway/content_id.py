"""Content identifier extraction for pinning."""

import re

_CID = re.compile(
    r"^(Qm[1-9A-HJ-NP-Za-km-z]{44,}"
    r"|b[A-Za-z2-7]{58,}"
    r"|B[A-Z2-7]{58,}"
    r"|z[1-9A-HJ-NP-Za-km-z]{48,}"
    r"|F[0-9A-F]{50,})$"
)


def extract_content_id(value: str) -> str | None:
    """Return ``<cid>[/<path>]`` from a URL or path, or None if it has no CID.

    >>> extract_content_id("https://gw.example/ipfs/QmYwAPJzv5CZsnA625s3Xf2nemtYgPpHdWEz79ojWnPbdG/1.png")
    'QmYwAPJzv5CZsnA625s3Xf2nemtYgPpHdWEz79ojWnPbdG/1.png'
    """
    value = value.split("?", 1)[0].split("#", 1)[0]
    if "://" in value:
        value = value.split("://", 1)[1]

    segments = [s for s in value.split("/") if s]
    for i, segment in enumerate(segments):
        if _CID.match(segment):
            return "/".join(segments[i:])
    return None
