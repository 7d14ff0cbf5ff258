"""Decoding helpers for FSS error response bodies."""

import json
import logging
from xml.etree import ElementTree

logger = logging.getLogger(__name__)


def _local_name(tag: str) -> str:
    """Strip a ``{namespace}`` prefix from an element tag."""
    if tag.startswith("{"):
        return tag.split("}", 1)[1]
    return tag


def parse_error_xml(body: bytes | str) -> dict[str, str]:
    """Parse an ``<Error>`` document into a flat tag -> text mapping.

    Only the direct children of ``<Error>`` are collected, keyed by their
    local tag name. Text is whitespace-normalized.

    Args:
        body: The raw XML body.

    Returns:
        The decoded fields, or an empty dict when the body is empty,
        not well-formed or not an ``<Error>`` document.
    """
    if not body:
        return {}
    try:
        root = ElementTree.fromstring(body)
    except ElementTree.ParseError:
        logger.debug("Error body is not well-formed XML")
        return {}

    if _local_name(root.tag) != "Error":
        return {}

    fields: dict[str, str] = {}
    for child in root:
        text = "".join(child.itertext())
        fields[_local_name(child.tag)] = " ".join(text.split())
    return fields


def parse_error_json(body: bytes | str) -> dict[str, str]:
    """Parse a JSON error body of the form ``{"code": ..., "desc": ...}``.

    Returns:
        A mapping with ``Code`` and ``Message`` keys, or an empty dict when the
        body is not JSON or lacks either member.
    """
    if not body:
        return {}
    try:
        data = json.loads(body)
    except ValueError:
        logger.debug("Error body is not valid JSON")
        return {}

    if not isinstance(data, dict) or not data.get("code") or not data.get("desc"):
        return {}
    fields = {str(k): str(v) for k, v in data.items()}
    fields["Code"] = str(data["code"])
    fields["Message"] = str(data["desc"])
    return fields


def parse_error_body(content_type: str, body: bytes) -> dict[str, str]:
    """Decode an error body according to its declared content type.

    Args:
        content_type: The response ``content-type`` header (may be empty).
        body: The buffered response body.

    Returns:
        The decoded fields; empty when the type is neither XML nor JSON or the
        body cannot be decoded.
    """
    content_type = content_type.lower()
    if "xml" in content_type:
        return parse_error_xml(body)
    if "json" in content_type:
        return parse_error_json(body)
    return {}
