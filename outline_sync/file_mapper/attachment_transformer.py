"""Embedded image reference rewriting.

Document bodies reference images either remotely,

    ![Diagram](/api/attachments.redirect?id=<uuid> =300x200)

or, once downloaded, through a path relative to the document file:

    ![Diagram](./images/<uuid>.png =300x200)

The functions here convert between the two forms. They are pure text
transforms; downloading and uploading the files is the reconcilers' job.
"""

import posixpath
import re
from typing import List, Sequence

from .models import AttachmentInfo, ImageUploadInfo

ATTACHMENT_PATTERN = re.compile(
    r'!\[([^\]]*)\]\(/api/attachments\.redirect\?id=([a-f0-9-]+)([^)]*)\)'
)
RELATIVE_IMAGE_PATTERN = re.compile(r'!\[([^\]]*)\]\(\./([^)\s]+)([^)]*)\)')
UUID_PATTERN = re.compile(
    r'^[a-f0-9]{8}-[a-f0-9]{4}-4[a-f0-9]{3}-[89ab][a-f0-9]{3}-[a-f0-9]{12}$',
    re.IGNORECASE,
)
ATTACHMENT_URL_PREFIX = "/api/attachments.redirect?id="


def is_attachment_id(value: str) -> bool:
    """Return True if value looks like an attachment (UUID v4) ID."""
    return bool(UUID_PATTERN.match(value))


def parse_attachments(body: str) -> List[AttachmentInfo]:
    """Find every remote attachment reference in a body.

    Args:
        body: Document text

    Returns:
        One AttachmentInfo per reference, in order of appearance
    """
    attachments = []
    for match in ATTACHMENT_PATTERN.finditer(body):
        whole = match.group(0)
        attachments.append(AttachmentInfo(
            id=match.group(2),
            caption=match.group(1),
            original_reference=whole[whole.index('(') + 1:whole.rindex(')')],
            annotations=match.group(3) or None,
        ))
    return attachments


def parse_relative_images(body: str) -> List[ImageUploadInfo]:
    """Find every relative (./...) image reference in a body.

    An image whose file name without extension is a UUID was downloaded
    from the remote store and is classified as an existing attachment.
    """
    images = []
    for match in RELATIVE_IMAGE_PATTERN.finditer(body):
        relative_path = match.group(2)
        stem = posixpath.splitext(posixpath.basename(relative_path))[0]
        existing = is_attachment_id(stem)
        images.append(ImageUploadInfo(
            caption=match.group(1),
            relative_path=relative_path,
            is_existing_attachment=existing,
            attachment_id=stem if existing else None,
            annotations=match.group(3) or None,
        ))
    return images


def to_local_paths(
    body: str,
    attachments: Sequence[AttachmentInfo],
    document_dir: str,
) -> str:
    """Replace remote attachment references with relative local paths.

    Attachments without a local_path are left untouched.

    Args:
        body: Document text
        attachments: Parsed attachments with local_path filled in
        document_dir: Directory containing the document file

    Returns:
        Rewritten body
    """
    for attachment in attachments:
        if not attachment.local_path:
            continue
        relative = posixpath.relpath(
            _to_posix(attachment.local_path), _to_posix(document_dir)
        )
        if not relative.startswith('.'):
            relative = f"./{relative}"
        original = f"![{attachment.caption}]({attachment.original_reference})"
        replacement = f"![{attachment.caption}]({relative}{attachment.annotations or ''})"
        body = body.replace(original, replacement, 1)
    return body


def to_remote_references(body: str, images: Sequence[ImageUploadInfo]) -> str:
    """Replace relative paths of existing attachments with remote references.

    Images not yet uploaded keep their relative path; the caller uploads
    them and rewrites the reference itself.
    """
    for image in images:
        if not (image.is_existing_attachment and image.attachment_id):
            continue
        annotations = image.annotations or ''
        original = f"![{image.caption}](./{image.relative_path}{annotations})"
        replacement = (
            f"![{image.caption}]({ATTACHMENT_URL_PREFIX}{image.attachment_id}{annotations})"
        )
        body = body.replace(original, replacement, 1)
    return body


def replace_image_reference(body: str, image: ImageUploadInfo, url: str) -> str:
    """Point one relative image reference at an uploaded attachment URL."""
    annotations = image.annotations or ''
    original = f"![{image.caption}](./{image.relative_path}{annotations})"
    return body.replace(original, f"![{image.caption}]({url}{annotations})", 1)


def _to_posix(path: str) -> str:
    return path.replace('\\', '/')
