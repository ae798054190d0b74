"""Front matter utilities for static-site Markdown pages.

Static-site generators put page metadata at the top of each Markdown file.
Two delimiters are recognised:

    ---                       +++
    title: Routing Guide      title = "Routing Guide"
    ---                       +++
    # Body                    # Body

``---`` blocks are parsed as YAML, ``+++`` blocks as TOML. Unlike lenient
preview tooling, a block that opens but does not parse is an error: the
index build must fail loudly on broken content instead of silently indexing
the metadata as body text.
"""

import re
import tomllib
from typing import Any

import yaml


YAML_DELIMITER = "---"
TOML_DELIMITER = "+++"

_BLOCK_PATTERNS = {
    delimiter: re.compile(rf"\A{re.escape(delimiter)}[ \t]*\r?\n(.*?)\r?\n{re.escape(delimiter)}[ \t]*(?:\r?\n|\Z)", re.DOTALL)
    for delimiter in (YAML_DELIMITER, TOML_DELIMITER)
}


class FrontMatterError(ValueError):
    """Raised when a front matter block is present but cannot be parsed."""


def parse_front_matter(content: str) -> tuple[dict[str, Any], str]:
    """Split front matter from Markdown content.

    Args:
        content: Full file content including front matter

    Returns:
        Tuple of (front_matter_dict, markdown_content).
        If no front matter block is present, returns (empty dict, original content).

    Raises:
        FrontMatterError: The block exists but is not valid YAML/TOML or not a mapping.

    Example:
        >>> metadata, markdown = parse_front_matter("---\\ntitle: Hi\\n---\\n# Content")
        >>> metadata["title"]
        'Hi'
        >>> markdown
        '# Content'
    """
    text = content.lstrip("\ufeff")
    for delimiter, pattern in _BLOCK_PATTERNS.items():
        match = pattern.match(text)
        if match is None:
            continue
        metadata = _load_block(delimiter, match.group(1))
        return metadata, text[match.end() :]
    return {}, content


def _load_block(delimiter: str, block: str) -> dict[str, Any]:
    try:
        if delimiter == TOML_DELIMITER:
            metadata: Any = tomllib.loads(block)
        else:
            metadata = yaml.safe_load(block) or {}
    except (yaml.YAMLError, tomllib.TOMLDecodeError) as exc:
        raise FrontMatterError(f"invalid front matter: {exc}") from exc

    if not isinstance(metadata, dict):
        raise FrontMatterError(f"front matter must be a mapping, got {type(metadata).__name__}")
    return metadata
