"""Markdown helpers — parsing SKILL.md frontmatter."""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)


def parse_skill_frontmatter(content: str) -> tuple[dict[str, Any], str]:
    """Parse YAML frontmatter from a SKILL.md file.

    Returns (metadata_dict, body_after_frontmatter).
    """
    match = re.match(r"^---\s*\n(.*?)\n---\s*\n?(.*)", content, re.DOTALL)
    if not match:
        return {}, content

    try:
        meta = yaml.safe_load(match.group(1)) or {}
    except yaml.YAMLError:
        meta = {}

    if not isinstance(meta, dict):
        meta = {}
    return meta, match.group(2)


def read_skill_description(skill_md: Path) -> str | None:
    """Return the frontmatter ``description`` of *skill_md*, or None."""
    try:
        content = skill_md.read_text(encoding="utf-8", errors="replace")
    except OSError as exc:
        logger.debug("Could not read %s: %s", skill_md, exc)
        return None

    meta, _ = parse_skill_frontmatter(content)
    description = meta.get("description")
    if description is None:
        return None
    return str(description).strip() or None
