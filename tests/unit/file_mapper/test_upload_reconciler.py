"""Unit tests for file_mapper.upload_reconciler module."""

import asyncio
import os

import pytest

from outline_sync.file_mapper.errors import ParentResolutionError
from outline_sync.file_mapper.frontmatter_handler import FrontmatterHandler
from outline_sync.file_mapper.upload_reconciler import UploadReconciler, is_remote_id
from outline_sync.outline_client.concurrency import ConcurrencyLimiter
from outline_sync.outline_client.errors import (
    APIAccessError,
    DocumentNotFoundError,
    TransferError,
)
from tests.fixtures.sample_documents import (
    ATTACHMENT_ID,
    COLLECTION_ID,
    OTHER_COLLECTION_ID,
    doc_id,
    make_document,
    write_document,
)


def _create_by_title(api, ids):
    """Make create_document return a document whose ID is looked up by title."""
    async def create(title, text, collection_id, parent_id=None):
        return make_document(ids[title], title, text, parent_id=parent_id)
    api.create_document.side_effect = create


def _reconciler(api, limit=4):
    return UploadReconciler(api, ConcurrencyLimiter(limit))


class TestUploadCreate:
    """Documents without remoteId are created."""

    @pytest.mark.asyncio
    async def test_parent_created_before_child(self, api, collection):
        """index.md 'Root' gets R1, then 'Child' is created under R1."""
        root = collection.output_directory
        index_path = write_document(os.path.join(root, "index.md"), "Root", body="root")
        child_path = write_document(os.path.join(root, "child.md"), "Child", body="child")
        _create_by_title(api, {"Root": doc_id(1), "Child": doc_id(2)})

        result = await _reconciler(api).upload_collection(collection)

        assert result.created == 2
        assert result.errors == []
        calls = api.create_document.await_args_list
        assert calls[0].kwargs["title"] == "Root"
        assert calls[0].kwargs["parent_id"] is None
        assert calls[1].kwargs["title"] == "Child"
        assert calls[1].kwargs["parent_id"] == doc_id(1)
        assert FrontmatterHandler.read_file(index_path)[0].remote_id == doc_id(1)
        assert FrontmatterHandler.read_file(child_path)[0].remote_id == doc_id(2)

    @pytest.mark.asyncio
    async def test_created_file_keeps_local_body(self, api, collection):
        path = write_document(
            os.path.join(collection.output_directory, "doc.md"), "Doc", body="Local body\n", order=4,
        )

        async def create(title, text, collection_id, parent_id=None):
            return make_document(doc_id(1), title, "normalized by server", url_id="u1")
        api.create_document.side_effect = create

        await _reconciler(api).upload_collection(collection)

        metadata, body = FrontmatterHandler.read_file(path)
        assert body == "Local body\n"
        assert metadata.remote_id == doc_id(1)
        assert metadata.url_id == "u1"
        assert metadata.order == 4

    @pytest.mark.asyncio
    async def test_nested_directories_resolve_through_pass(self, api, collection):
        root = collection.output_directory
        write_document(os.path.join(root, "a", "index.md"), "A")
        write_document(os.path.join(root, "a", "b", "index.md"), "B")
        write_document(os.path.join(root, "a", "b", "leaf.md"), "Leaf")
        _create_by_title(api, {"A": doc_id(1), "B": doc_id(2), "Leaf": doc_id(3)})

        result = await _reconciler(api, limit=1).upload_collection(collection)

        parents = {c.kwargs["title"]: c.kwargs["parent_id"] for c in api.create_document.await_args_list}
        assert result.created == 3
        assert parents == {"A": None, "B": doc_id(1), "Leaf": doc_id(2)}

    @pytest.mark.asyncio
    async def test_existing_attachments_sent_as_remote_references(self, api, collection):
        write_document(
            os.path.join(collection.output_directory, "doc.md"), "Doc",
            body=f"![D](./images/{ATTACHMENT_ID}.png)\n",
        )
        _create_by_title(api, {"Doc": doc_id(1)})

        await _reconciler(api).upload_collection(collection)

        text = api.create_document.await_args.kwargs["text"]
        assert text == f"![D](/api/attachments.redirect?id={ATTACHMENT_ID})\n"

    @pytest.mark.asyncio
    async def test_update_only_skips_new_documents(self, api, collection):
        write_document(os.path.join(collection.output_directory, "new.md"), "New")

        result = await _reconciler(api).upload_collection(collection, update_only=True)

        assert result.skipped == 1
        api.create_document.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_missing_remote_document_is_recreated(self, api, collection):
        path = write_document(
            os.path.join(collection.output_directory, "doc.md"), "Doc", remote_id=doc_id(7),
        )
        api.fetch_document.side_effect = DocumentNotFoundError(doc_id(7))
        _create_by_title(api, {"Doc": doc_id(8)})

        result = await _reconciler(api).upload_collection(collection)

        assert result.created == 1
        assert FrontmatterHandler.read_file(path)[0].remote_id == doc_id(8)

    @pytest.mark.asyncio
    async def test_missing_remote_document_skipped_with_update_only(self, api, collection):
        write_document(os.path.join(collection.output_directory, "doc.md"), "Doc", remote_id=doc_id(7))
        api.fetch_document.side_effect = DocumentNotFoundError(doc_id(7))

        result = await _reconciler(api).upload_collection(collection, update_only=True)

        assert result.skipped == 1
        api.create_document.assert_not_awaited()


class TestUploadUpdate:
    """Documents with remoteId are updated, moved or skipped."""

    @pytest.mark.asyncio
    async def test_unchanged_document_is_skipped(self, api, collection):
        write_document(
            os.path.join(collection.output_directory, "doc.md"), "Doc", body="Same\n", remote_id=doc_id(1),
        )
        api.fetch_document.return_value = make_document(doc_id(1), "Doc", "Same")

        result = await _reconciler(api).upload_collection(collection)

        assert result.skipped == 1
        api.update_document.assert_not_awaited()
        api.move_document.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_changed_text_updates_and_writes_server_body(self, api, collection):
        path = write_document(
            os.path.join(collection.output_directory, "doc.md"), "Doc", body="New text\n",
            remote_id=doc_id(1), order=2,
        )
        api.fetch_document.return_value = make_document(doc_id(1), "Doc", "Old text")
        api.update_document.return_value = make_document(doc_id(1), "Doc", "New text (canonical)")

        result = await _reconciler(api).upload_collection(collection)

        assert result.updated == 1
        api.update_document.assert_awaited_once_with(doc_id(1), title="Doc", text="New text\n")
        metadata, body = FrontmatterHandler.read_file(path)
        assert body == "New text (canonical)\n"
        assert metadata.order == 2

    @pytest.mark.asyncio
    async def test_title_change_updates(self, api, collection):
        write_document(
            os.path.join(collection.output_directory, "doc.md"), "Renamed", body="Same",
            remote_id=doc_id(1),
        )
        api.fetch_document.return_value = make_document(doc_id(1), "Original", "Same")
        api.update_document.return_value = make_document(doc_id(1), "Renamed", "Same")

        result = await _reconciler(api).upload_collection(collection)

        assert result.updated == 1

    @pytest.mark.asyncio
    async def test_moved_document_is_updated(self, api, collection):
        """A new parent issues a move with the local sibling position."""
        root = collection.output_directory
        write_document(os.path.join(root, "guides", "index.md"), "Guides", remote_id=doc_id(1))
        write_document(
            os.path.join(root, "guides", "first.md"), "First", order=1, remote_id=doc_id(3),
        )
        write_document(
            os.path.join(root, "guides", "moved.md"), "Moved", body="Body", order=2, remote_id=doc_id(2),
        )
        remote = {
            doc_id(1): make_document(doc_id(1), "Guides"),
            doc_id(2): make_document(doc_id(2), "Moved", "Body"),
            doc_id(3): make_document(doc_id(3), "First", parent_id=doc_id(1)),
        }
        api.fetch_document.side_effect = lambda id: remote[id]

        result = await _reconciler(api).upload_collection(collection)

        api.move_document.assert_awaited_once_with(
            doc_id(2), collection_id=COLLECTION_ID, parent_id=doc_id(1), index=1,
        )
        api.update_document.assert_not_awaited()
        assert result.updated == 1
        assert result.skipped == 2

    @pytest.mark.asyncio
    async def test_document_in_other_collection_is_moved(self, api, collection):
        write_document(os.path.join(collection.output_directory, "doc.md"), "Doc", remote_id=doc_id(1))
        api.fetch_document.return_value = make_document(
            doc_id(1), "Doc", collection_id=OTHER_COLLECTION_ID,
        )

        result = await _reconciler(api).upload_collection(collection)

        assert api.move_document.await_args.kwargs["collection_id"] == COLLECTION_ID
        assert result.updated == 1


class TestUploadImages:
    """New local images are uploaded and replaced by attachment URLs."""

    @pytest.mark.asyncio
    async def test_create_uploads_new_images(self, api, collection):
        root = collection.output_directory
        path = write_document(os.path.join(root, "doc.md"), "Doc", body="![Shot](./img/shot.png =200x)\n")
        _mkimg(root)
        _create_by_title(api, {"Doc": doc_id(1)})
        api.upload_attachment.return_value = f"/api/attachments.redirect?id={ATTACHMENT_ID}"
        api.update_document.return_value = make_document(
            doc_id(1), "Doc", f"![Shot](/api/attachments.redirect?id={ATTACHMENT_ID} =200x)",
        )

        result = await _reconciler(api).upload_collection(collection)

        assert result.created == 1
        api.upload_attachment.assert_awaited_once_with(
            doc_id(1), os.path.join(os.path.abspath(root), "img", "shot.png"),
        )
        api.update_document.assert_awaited_once_with(
            doc_id(1), text=f"![Shot](/api/attachments.redirect?id={ATTACHMENT_ID} =200x)\n",
        )
        assert "attachments.redirect" in FrontmatterHandler.read_file(path)[1]

    @pytest.mark.asyncio
    async def test_update_uploads_new_images(self, api, collection):
        """An existing document referencing a new local image gets it uploaded."""
        root = collection.output_directory
        path = write_document(
            os.path.join(root, "doc.md"), "Doc", body="![d](./img/diagram.png)\n", remote_id=doc_id(1),
        )
        image_path = _mkimg(root, "diagram.png")
        url = f"/api/attachments.redirect?id={ATTACHMENT_ID}"
        api.fetch_document.return_value = make_document(doc_id(1), "Doc", "old")
        api.upload_attachment.return_value = url
        api.update_document.return_value = make_document(doc_id(1), "Doc", f"![d]({url})")

        result = await _reconciler(api).upload_collection(collection)

        assert result.updated == 1
        api.upload_attachment.assert_awaited_once_with(doc_id(1), os.path.abspath(image_path))
        api.update_document.assert_awaited_once_with(doc_id(1), title="Doc", text=f"![d]({url})\n")
        assert FrontmatterHandler.read_file(path)[1] == f"![d]({url})\n"

    @pytest.mark.asyncio
    async def test_create_keeps_document_when_image_upload_fails(self, api, collection):
        root = collection.output_directory
        path = write_document(os.path.join(root, "doc.md"), "Doc", body="![Shot](./img/missing.png)\n")
        _create_by_title(api, {"Doc": doc_id(1)})

        result = await _reconciler(api).upload_collection(collection)

        assert result.created == 1
        assert result.errors == []
        api.update_document.assert_not_awaited()
        metadata, body = FrontmatterHandler.read_file(path)
        assert metadata.remote_id == doc_id(1)
        assert body == "![Shot](./img/missing.png)\n"

    @pytest.mark.asyncio
    async def test_update_image_failure_is_document_error(self, api, collection):
        root = collection.output_directory
        write_document(os.path.join(root, "doc.md"), "Doc", body="![S](./img/s.png)", remote_id=doc_id(1))
        _mkimg(root, "s.png")
        api.fetch_document.return_value = make_document(doc_id(1), "Doc", "old")
        api.upload_attachment.side_effect = TransferError("img/s.png", "HTTP 500")

        result = await _reconciler(api).upload_collection(collection)

        assert result.error_count == 1
        assert isinstance(result.errors[0][1], TransferError)


class TestUploadErrors:
    """Per-document isolation and parent resolution."""

    @pytest.mark.asyncio
    async def test_failure_does_not_stop_siblings(self, api, collection):
        root = collection.output_directory
        write_document(os.path.join(root, "bad.md"), "Bad", order=1)
        write_document(os.path.join(root, "good.md"), "Good", order=2)

        async def create(title, text, collection_id, parent_id=None):
            if title == "Bad":
                raise APIAccessError("HTTP 400: invalid", status_code=400)
            return make_document(doc_id(2), title, text)
        api.create_document.side_effect = create

        result = await _reconciler(api).upload_collection(collection)

        assert result.created == 1
        assert result.error_count == 1
        assert result.failed
        assert result.errors[0][0].endswith("bad.md")
        with pytest.raises(APIAccessError):
            result.raise_for_errors()

    @pytest.mark.asyncio
    async def test_child_of_failed_new_parent_cannot_resolve(self, api, collection):
        root = collection.output_directory
        write_document(os.path.join(root, "guides", "index.md"), "Guides")
        write_document(os.path.join(root, "guides", "install.md"), "Install")
        api.create_document.side_effect = APIAccessError("HTTP 500", status_code=500)

        result = await _reconciler(api).upload_collection(collection)

        assert result.error_count == 2
        assert isinstance(result.errors[-1][1], ParentResolutionError)
        assert api.create_document.await_count == 1

    @pytest.mark.asyncio
    async def test_limit_of_one_does_not_deadlock(self, api, collection):
        """Children waiting for their parent do not hold limiter slots."""
        root = collection.output_directory
        write_document(os.path.join(root, "index.md"), "Root")
        for n in range(5):
            write_document(os.path.join(root, f"child{n}.md"), f"Child {n}")
        ids = {"Root": doc_id(100)}
        ids.update({f"Child {n}": doc_id(n) for n in range(5)})
        _create_by_title(api, ids)

        result = await asyncio.wait_for(
            _reconciler(api, limit=1).upload_collection(collection), timeout=5,
        )

        assert result.created == 6

    @pytest.mark.asyncio
    async def test_in_flight_never_exceeds_limit(self, api, collection):
        root = collection.output_directory
        for n in range(6):
            write_document(os.path.join(root, f"doc{n}.md"), f"Doc {n}")
        limiter = ConcurrencyLimiter(2)
        peak = 0

        async def create(title, text, collection_id, parent_id=None):
            nonlocal peak
            peak = max(peak, limiter.in_flight)
            await asyncio.sleep(0.01)
            return make_document(doc_id(int(title.split()[1])), title, text)
        api.create_document.side_effect = create

        result = await UploadReconciler(api, limiter).upload_collection(collection)

        assert result.created == 6
        assert peak == 2
        assert limiter.in_flight == 0

    @pytest.mark.asyncio
    async def test_unexpected_error_is_recorded_per_document(self, api, collection):
        root = collection.output_directory
        write_document(os.path.join(root, "bad.md"), "Bad", order=1)
        write_document(os.path.join(root, "good.md"), "Good", order=2)

        async def create(title, text, collection_id, parent_id=None):
            if title == "Bad":
                raise KeyError("data")
            return make_document(doc_id(2), title, text)
        api.create_document.side_effect = create

        result = await _reconciler(api).upload_collection(collection)

        assert result.created == 1
        assert result.error_count == 1
        assert isinstance(result.errors[0][1], KeyError)


class TestIsRemoteId:
    """Test cases for is_remote_id()."""

    def test_uuid_is_remote_id(self):
        assert is_remote_id(doc_id(1))

    def test_path_is_not_remote_id(self):
        assert not is_remote_id("/docs/guides/index.md")


def _mkimg(root, name="shot.png"):
    directory = os.path.join(root, "img")
    os.makedirs(directory, exist_ok=True)
    path = os.path.join(directory, name)
    with open(path, "wb") as f:
        f.write(b"png")
    return path
