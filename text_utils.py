"""
Text cleanup helpers for model replies and speech scripts.
"""
from __future__ import annotations

import json
import re
import unicodedata
from typing import Optional

_DATA_URL_RE = re.compile(r'^data:image/\w+;base64,(.+)$', re.DOTALL)
_CODE_FENCE_RE = re.compile(r'```(?:json)?\s*', re.IGNORECASE)
_JSON_OBJECT_RE = re.compile(r'\{[\s\S]*\}')

_MD_HEADER_RE = re.compile(r'^\s*#{1,6}\s*(.+?)$', re.MULTILINE)
_MD_BOLD_ASTERISK_RE = re.compile(r'\*\*(.+?)\*\*')
_MD_BOLD_UNDERSCORE_RE = re.compile(r'__(.+?)__')
_MD_ITALIC_ASTERISK_RE = re.compile(r'(?<!\w)\*([^*\n]+?)\*(?!\w)')
_MD_BULLET_RE = re.compile(r'^\s*[-*•]\s+', re.MULTILINE)
_MD_NUMBERED_RE = re.compile(r'^\s*\d+\.\s+', re.MULTILINE)
_MD_EXTRA_NEWLINES_RE = re.compile(r'\n{3,}')


def strip_data_url_prefix(image_b64: str) -> str:
    """Strip a ``data:image/...;base64,`` prefix if present."""
    match = _DATA_URL_RE.match(image_b64 or "")
    return match.group(1) if match else image_b64


def extract_json_object(text: str) -> Optional[dict]:
    """
    Pull the outermost JSON object out of a model reply.
    Code fences are removed first; returns None when nothing parses.
    """
    if not text:
        return None
    text = _CODE_FENCE_RE.sub('', text).strip()
    match = _JSON_OBJECT_RE.search(text)
    if not match:
        return None
    try:
        data = json.loads(match.group(0))
    except json.JSONDecodeError:
        return None
    return data if isinstance(data, dict) else None


def clean_text_for_speech(text: str) -> str:
    """
    Convert a markdown reply into plain text a TTS voice can read.
    Removes headers, bold/italic markers, bullets and emoji.
    """
    if not text:
        return text

    text = text.replace('\r\n', '\n').replace('\r', '\n')
    text = _MD_HEADER_RE.sub(r'\1', text)
    text = _MD_BOLD_ASTERISK_RE.sub(r'\1', text)
    text = _MD_BOLD_UNDERSCORE_RE.sub(r'\1', text)
    text = _MD_ITALIC_ASTERISK_RE.sub(r'\1', text)
    text = _MD_BULLET_RE.sub('', text)
    text = _MD_NUMBERED_RE.sub('', text)

    # Emoji and pictographs
    text = "".join(
        ch for ch in text
        if unicodedata.category(ch) not in ("So", "Sk", "Cs") and ch not in ("\ufe0f", "\u200d")
    )

    lines = [re.sub(r'[ \t]+', ' ', line).strip() for line in text.split('\n')]
    text = '\n'.join(lines)
    text = _MD_EXTRA_NEWLINES_RE.sub('\n\n', text)
    return text.strip()
