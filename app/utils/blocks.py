"""
Page content blocks: validation, normalization and sanitization.

Admin writes reject the whole payload on the first invalid block; public
reads drop invalid blocks and keep the rest.
"""

import logging
import re
from typing import Any
from urllib.parse import urlparse

from ..security_utils import sanitize_html, sanitize_iframe

logger = logging.getLogger(__name__)

ALLOWED_TYPES = ["rich-text", "image", "video", "divider", "map", "survey"]

ALLOWED_IFRAME_HOSTS = {
    "www.youtube.com",
    "youtube.com",
    "www.youtube-nocookie.com",
    "player.vimeo.com",
    "www.google.com",  # maps
    "maps.google.com",
    "www.google.lt",
    "www.google.lv",
}

IFRAME_SRC_RE = re.compile(r"<iframe[^>]+src=[\"']([^\"']+)[\"']", re.IGNORECASE)


class BlockError(ValueError):
    """Invalid content block."""


def is_allowed_iframe_host(src: str) -> bool:
    try:
        parsed = urlparse(src)
    except ValueError:
        return False
    return parsed.scheme == "https" and parsed.hostname in ALLOWED_IFRAME_HOSTS


def validate_block(block: Any) -> None:
    if not isinstance(block, dict):
        raise BlockError("Block must be an object.")
    block_type = block.get("type")
    if not isinstance(block_type, str) or not block_type:
        raise BlockError('Block requires a "type" string.')
    if block_type not in ALLOWED_TYPES:
        raise BlockError(f'Unsupported block type "{block_type}". Allowed: {", ".join(ALLOWED_TYPES)}')

    if block_type == "rich-text" and not isinstance(block.get("html"), str):
        raise BlockError('rich-text block requires "html" string.')
    if block_type == "image":
        src = block.get("src")
        if not isinstance(src, str) or not src.strip():
            raise BlockError('image block requires non-empty "src".')
    if block_type in ("video", "map") and not isinstance(block.get("embed"), str):
        raise BlockError(f'{block_type} block requires "embed" string (iframe HTML or URL).')
    if block_type == "survey":
        survey_id = block.get("id")
        if isinstance(survey_id, bool) or not isinstance(survey_id, int) or survey_id <= 0:
            raise BlockError('survey block requires numeric positive "id".')


def normalize_block(block: dict) -> dict:
    normalized = dict(block)
    block_type = normalized["type"]
    if block_type == "image":
        alt = normalized.get("alt")
        normalized["alt"] = alt.strip() if isinstance(alt, str) else ""
        normalized["src"] = normalized["src"].strip()
    elif block_type == "rich-text":
        normalized["html"] = normalized["html"].strip()
    elif block_type in ("video", "map"):
        normalized["embed"] = normalized["embed"].strip()
    return normalized


def _sanitize_embed(embed: str) -> str:
    html = embed
    if re.match(r"^https?://", html, re.IGNORECASE) and "<iframe" not in html.lower():
        if not is_allowed_iframe_host(html):
            return ""
        html = f'<iframe src="{html}" frameborder="0" allowfullscreen></iframe>'

    sanitized = sanitize_iframe(html)
    match = IFRAME_SRC_RE.search(sanitized)
    if not match or not is_allowed_iframe_host(match.group(1)):
        return ""
    return sanitized


def sanitize_block(block: dict) -> dict:
    sanitized = dict(block)
    if sanitized["type"] == "rich-text":
        sanitized["html"] = sanitize_html(sanitized["html"])
    elif sanitized["type"] in ("video", "map"):
        sanitized["embed"] = _sanitize_embed(sanitized["embed"])
    elif sanitized["type"] == "image" and not re.match(r"^(https?://|/)", sanitized["src"]):
        sanitized["src"] = ""
    return sanitized


def process_blocks(blocks: Any, mode: str = "admin") -> list:
    """
    Validate, normalize and sanitize ``blocks``.

    In ``admin`` mode the first invalid block raises BlockError; in
    ``public`` mode invalid blocks are skipped.
    """
    if not isinstance(blocks, list):
        raise BlockError("content must be an array of blocks")

    processed = []
    for index, block in enumerate(blocks):
        try:
            validate_block(block)
            processed.append(sanitize_block(normalize_block(block)))
        except BlockError as e:
            if mode != "public":
                raise BlockError(f"Block {index}: {e}") from e
            logger.warning(f"⚠️ Skipping invalid content block {index}: {e}")
    return processed
