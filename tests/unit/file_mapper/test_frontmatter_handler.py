"""Unit tests for file_mapper.frontmatter_handler module."""

import os

import pytest

from outline_sync.file_mapper.errors import FilesystemError, ParseError
from outline_sync.file_mapper.frontmatter_handler import FrontmatterHandler
from outline_sync.file_mapper.models import DocumentFrontmatter


class TestFrontmatterHandlerParse:
    """Test cases for FrontmatterHandler.parse() method."""

    def test_parse_full_metadata(self):
        """All schema fields are read, sidebar.order becomes order."""
        content = """---
title: Getting Started
description: First steps
sidebar:
  order: 3
remoteId: 00000000-0000-4000-8000-000000000001
urlId: abc123
---

# Getting Started

Welcome.
"""
        metadata, body = FrontmatterHandler.parse("/docs/getting-started.md", content)

        assert metadata.title == "Getting Started"
        assert metadata.description == "First steps"
        assert metadata.order == 3
        assert metadata.remote_id == "00000000-0000-4000-8000-000000000001"
        assert metadata.url_id == "abc123"
        assert body == "# Getting Started\n\nWelcome.\n"

    def test_parse_title_only(self):
        """Optional fields default to None."""
        metadata, body = FrontmatterHandler.parse("/docs/a.md", "---\ntitle: A\n---\nBody\n")

        assert metadata == DocumentFrontmatter(title="A")
        assert body == "Body\n"

    def test_parse_ignores_unknown_fields(self):
        """Fields outside the schema are dropped rather than rejected."""
        content = "---\ntitle: A\ntags: [x, y]\n---\n\nBody\n"

        metadata, _ = FrontmatterHandler.parse("/docs/a.md", content)

        assert metadata.title == "A"

    def test_parse_missing_title_names_file(self):
        """A block without title is a ParseError embedding the path."""
        content = "---\ndescription: no title\n---\n\nBody\n"

        with pytest.raises(ParseError) as exc_info:
            FrontmatterHandler.parse("/docs/broken.md", content)

        assert "/docs/broken.md" in str(exc_info.value)
        assert "title" in str(exc_info.value)

    def test_parse_without_front_matter(self):
        """Plain markdown without a metadata block is rejected."""
        with pytest.raises(ParseError):
            FrontmatterHandler.parse("/docs/plain.md", "# Just markdown\n")

    def test_parse_invalid_yaml(self):
        """Malformed YAML is a ParseError."""
        content = "---\ntitle: [unclosed\n---\n\nBody\n"

        with pytest.raises(ParseError, match="Invalid YAML"):
            FrontmatterHandler.parse("/docs/bad.md", content)

    def test_parse_non_mapping(self):
        """A YAML list is not valid front matter."""
        with pytest.raises(ParseError, match="mapping"):
            FrontmatterHandler.parse("/docs/list.md", "---\n- a\n- b\n---\n\nBody\n")

    @pytest.mark.parametrize("block", [
        "title: 42",
        "title: A\nsidebar: 3",
        "title: A\nsidebar:\n  order: first",
        "title: A\nsidebar:\n  order: true",
        "title: A\nremoteId: [1, 2]",
    ])
    def test_parse_wrong_field_types(self, block):
        """Fields with the wrong type fail validation."""
        with pytest.raises(ParseError):
            FrontmatterHandler.parse("/docs/typed.md", f"---\n{block}\n---\n\nBody\n")

    def test_parse_rejects_deeply_nested_yaml(self):
        """Nesting beyond MAX_YAML_DEPTH is rejected."""
        nested = "title: A\nextra:\n"
        for level in range(1, 14):
            nested += "  " * level + f"k{level}:\n"
        nested += "  " * 14 + "v: 1"

        with pytest.raises(ParseError, match="depth"):
            FrontmatterHandler.parse("/docs/deep.md", f"---\n{nested}\n---\n\nBody\n")


class TestFrontmatterHandlerGenerate:
    """Test cases for FrontmatterHandler.generate() method."""

    def test_generate_orders_keys_and_omits_unset_fields(self):
        """Keys follow the canonical order and None fields are left out."""
        metadata = DocumentFrontmatter(title="Guide", order=2, remote_id="r-1")

        content = FrontmatterHandler.generate("Body", metadata)

        assert content == (
            "---\n"
            "title: Guide\n"
            "sidebar:\n"
            "  order: 2\n"
            "remoteId: r-1\n"
            "---\n"
            "\n"
            "Body\n"
        )

    def test_generate_without_metadata_writes_body_verbatim(self):
        """No metadata means the body is emitted as-is."""
        assert FrontmatterHandler.generate("Body without newline", None) == "Body without newline"

    def test_generate_then_parse_returns_same_metadata(self):
        """Generated content parses back to the same metadata."""
        metadata = DocumentFrontmatter(
            title="Café: Notes",
            description="Line one",
            order=7,
            remote_id="00000000-0000-4000-8000-000000000009",
            url_id="xyz",
        )

        parsed, body = FrontmatterHandler.parse(
            "/docs/cafe.md", FrontmatterHandler.generate("Hello\n", metadata)
        )

        assert parsed == metadata
        assert body == "Hello\n"


class TestFrontmatterHandlerFiles:
    """Test cases for read_file() and write_file()."""

    def test_write_creates_parent_directories(self, tmp_path):
        """Missing parent directories are created."""
        path = tmp_path / "a" / "b" / "doc.md"

        written = FrontmatterHandler.write_file(str(path), "Body", DocumentFrontmatter(title="Doc"))

        assert written is True
        assert path.read_text(encoding="utf-8").startswith("---\ntitle: Doc\n")

    def test_identical_write_keeps_bytes_and_mtime(self, tmp_path):
        """Writing the same content again is a no-op on disk."""
        path = tmp_path / "doc.md"
        metadata = DocumentFrontmatter(title="Doc", order=1)
        FrontmatterHandler.write_file(str(path), "Body\n", metadata)

        past = 1_000_000_000
        os.utime(path, (past, past))
        before = path.read_bytes()

        written = FrontmatterHandler.write_file(str(path), "Body\n", metadata)

        assert written is False
        assert path.read_bytes() == before
        assert os.stat(path).st_mtime == past

    def test_changed_write_replaces_content(self, tmp_path):
        """Different content is written."""
        path = tmp_path / "doc.md"
        FrontmatterHandler.write_file(str(path), "Old", DocumentFrontmatter(title="Doc"))

        written = FrontmatterHandler.write_file(str(path), "New", DocumentFrontmatter(title="Doc"))

        assert written is True
        assert path.read_text(encoding="utf-8").endswith("\nNew\n")

    def test_read_file_round_trip(self, tmp_path):
        """read_file returns what write_file stored."""
        path = tmp_path / "doc.md"
        metadata = DocumentFrontmatter(title="Doc", description="Kept")
        FrontmatterHandler.write_file(str(path), "# Doc\n", metadata)

        parsed, body = FrontmatterHandler.read_file(str(path))

        assert parsed == metadata
        assert body == "# Doc\n"

    def test_read_missing_file(self, tmp_path):
        """Unreadable files raise FilesystemError."""
        with pytest.raises(FilesystemError):
            FrontmatterHandler.read_file(str(tmp_path / "missing.md"))
