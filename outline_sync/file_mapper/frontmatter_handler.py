"""YAML front matter parsing and generation for markdown files.

Every document file is a YAML metadata block between `---` delimiters,
a blank line, and the free-form markdown body:

    ---
    title: Getting Started
    sidebar:
      order: 1
    remoteId: 3f1c...
    ---

    # Getting Started

The metadata is validated against DocumentFrontmatter; a file without a
title is a ParseError. Writes are skipped when the bytes on disk already
match, so an unchanged document never gets a new mtime.
"""

import logging
import os
import re
from typing import Optional, Tuple

import yaml

from .errors import FilesystemError, ParseError
from .models import DocumentFrontmatter

logger = logging.getLogger(__name__)


class FrontmatterHandler:
    """Reads and writes (metadata, body) pairs.

    All methods are classmethods; the handler holds no state.
    """

    # Front matter block at the very start of the file
    FRONTMATTER_PATTERN = re.compile(
        r'^---[ \t]*\r?\n(.*?)\r?\n---[ \t]*(?:\r?\n|$)',
        re.DOTALL
    )

    # Maximum allowed depth for YAML structures
    MAX_YAML_DEPTH = 10

    @classmethod
    def _validate_yaml_depth(cls, obj, current_depth: int = 0) -> None:
        """Reject pathologically nested YAML.

        Raises:
            ValueError: If depth exceeds MAX_YAML_DEPTH
        """
        if current_depth > cls.MAX_YAML_DEPTH:
            raise ValueError(
                f"YAML structure exceeds maximum depth of {cls.MAX_YAML_DEPTH}"
            )
        if isinstance(obj, dict):
            for value in obj.values():
                cls._validate_yaml_depth(value, current_depth + 1)
        elif isinstance(obj, list):
            for item in obj:
                cls._validate_yaml_depth(item, current_depth + 1)

    @classmethod
    def parse(cls, file_path: str, content: str) -> Tuple[DocumentFrontmatter, str]:
        """Split file content into validated metadata and body.

        Args:
            file_path: Path to the file (for error messages)
            content: Full file content including front matter

        Returns:
            Tuple of (metadata, body). The blank line separating the two is
            not part of the body.

        Raises:
            ParseError: If the block is missing, is not valid YAML, or does
                not satisfy the schema
        """
        match = cls.FRONTMATTER_PATTERN.match(content)
        if not match:
            raise ParseError(file_path, "missing front matter block with a 'title'")

        try:
            data = yaml.safe_load(match.group(1))
        except yaml.YAMLError as e:
            raise ParseError(file_path, f"Invalid YAML syntax: {e}")

        if not isinstance(data, dict):
            raise ParseError(
                file_path,
                f"Front matter must be a YAML mapping, got {type(data).__name__}"
            )

        try:
            cls._validate_yaml_depth(data)
            metadata = DocumentFrontmatter.from_dict(data)
        except ValueError as e:
            raise ParseError(file_path, str(e))

        body = content[match.end():]
        if body.startswith('\r\n'):
            body = body[2:]
        elif body.startswith('\n'):
            body = body[1:]

        return metadata, body

    @classmethod
    def generate(cls, body: str, metadata: Optional[DocumentFrontmatter]) -> str:
        """Render file content.

        Args:
            body: Markdown body
            metadata: Front matter, or None to emit the body verbatim

        Returns:
            Full file content
        """
        if metadata is None:
            return body

        yaml_str = yaml.safe_dump(
            metadata.to_dict(),
            default_flow_style=False,
            allow_unicode=True,
            sort_keys=False
        )
        if body and not body.endswith('\n'):
            body += '\n'
        return f"---\n{yaml_str}---\n\n{body}"

    @classmethod
    def read_file(cls, file_path: str) -> Tuple[DocumentFrontmatter, str]:
        """Read and parse a document file.

        Raises:
            FilesystemError: If the file cannot be read
            ParseError: If the front matter is invalid
        """
        try:
            with open(file_path, 'r', encoding='utf-8') as f:
                content = f.read()
        except (OSError, UnicodeDecodeError) as e:
            raise FilesystemError(file_path, 'read', str(e))
        return cls.parse(file_path, content)

    @classmethod
    def write_file(
        cls,
        file_path: str,
        body: str,
        metadata: Optional[DocumentFrontmatter],
    ) -> bool:
        """Write a document file, creating parent directories as needed.

        Nothing is written when the file already holds exactly these bytes.

        Args:
            file_path: Destination path
            body: Markdown body
            metadata: Front matter, or None to write the body verbatim

        Returns:
            True if the file was written, False if it was already up to date

        Raises:
            FilesystemError: If the directory or file cannot be written
        """
        data = cls.generate(body, metadata).encode('utf-8')

        try:
            with open(file_path, 'rb') as f:
                if f.read() == data:
                    logger.debug(f"Unchanged: {file_path}")
                    return False
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.debug(f"Could not compare existing {file_path}: {e}")

        try:
            parent = os.path.dirname(file_path)
            if parent:
                os.makedirs(parent, exist_ok=True)
            with open(file_path, 'wb') as f:
                f.write(data)
        except OSError as e:
            raise FilesystemError(file_path, 'write', str(e))

        logger.debug(f"Wrote {file_path}")
        return True
