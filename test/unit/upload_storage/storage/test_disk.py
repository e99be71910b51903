"""Tests for streaming uploads to disk."""

from pathlib import Path

import pytest

from upload_storage.core.settings import settings
from upload_storage.storage.disk import CollisionPolicy, DiskStorage, FileCollisionError, disk_storage


class TestDiskStorageConfig:
    """Tests for DiskStorage construction."""

    def test_destination_is_normalized(self, local_storage_dir: Path) -> None:
        """Verify destination normalization and target resolution."""
        storage = DiskStorage("uploads/./avatars/", root=local_storage_dir)
        assert storage.destination == "/uploads/avatars"
        assert storage.target == local_storage_dir / "uploads" / "avatars"

    def test_defaults(self) -> None:
        """Verify root, filename and collision defaults."""
        storage = disk_storage()
        assert storage.destination == "/"
        assert storage.filename is None
        assert storage.collision is CollisionPolicy.OVERWRITE
        assert storage.root == settings.LOCAL_STORAGE_DIR

    def test_collision_accepts_strings(self) -> None:
        """Verify policies can be given by value."""
        assert DiskStorage(collision="auto_rename").collision is CollisionPolicy.AUTO_RENAME

    def test_unknown_collision_policy_raises(self) -> None:
        """Verify invalid policies are rejected at construction."""
        with pytest.raises(ValueError):
            DiskStorage(collision="merge")

    def test_no_directory_created_before_first_file(self, local_storage_dir: Path) -> None:
        """Verify building the configuration does not touch the filesystem."""
        DiskStorage("lazy", root=local_storage_dir)
        assert not local_storage_dir.exists()


class TestDiskStorageWrites:
    """Tests for DiskStorage parsing to disk."""

    async def test_single_file_written_under_destination(self, local_storage_dir: Path, multipart_payload) -> None:
        """Verify the part lands under root/destination with its content."""
        data = b"%PDF-1.7 body"
        storage = DiskStorage("docs/", root=local_storage_dir)

        files = await storage.receive(*multipart_payload([("doc", "report.pdf", "application/pdf", data)]))

        upload = files.single
        assert upload is not None
        assert upload.buffer is None
        assert upload.size == len(data)
        assert upload.ext == "pdf"
        assert upload.path is not None and upload.path.startswith("/")
        written = Path(upload.path)
        assert written.parent == local_storage_dir / "docs"
        assert written.suffix == ".pdf"
        assert written.read_bytes() == data

    async def test_generated_names_are_distinct(self, local_storage_dir: Path, multipart_payload) -> None:
        """Verify two files without a fixed name get two paths."""
        storage = DiskStorage("photos", root=local_storage_dir)
        payload = multipart_payload(
            [("p", "a.png", "image/png", b"first"), ("p", "b.png", "image/png", b"second")]
        )

        files = await storage.receive(*payload)

        assert files[0].path != files[1].path
        assert sorted(p.read_bytes() for p in (local_storage_dir / "photos").iterdir()) == [b"first", b"second"]

    async def test_fixed_filename_last_write_wins(self, local_storage_dir: Path, multipart_payload) -> None:
        """Verify two files with a fixed name share one path, the second overwriting the first."""
        storage = DiskStorage("avatars", filename="avatar", root=local_storage_dir)
        payload = multipart_payload(
            [("a", "one.png", "image/png", b"first"), ("a", "two.png", "image/png", b"second")]
        )

        files = await storage.receive(*payload)

        assert files[0].path == files[1].path
        assert list((local_storage_dir / "avatars").iterdir()) == [local_storage_dir / "avatars" / "avatar.png"]
        assert (local_storage_dir / "avatars" / "avatar.png").read_bytes() == b"second"

    async def test_fixed_filename_overwrites_across_requests(self, local_storage_dir: Path, multipart_payload) -> None:
        """Verify a later request replaces the earlier file."""
        storage = DiskStorage("avatars", filename="avatar", root=local_storage_dir)

        await storage.receive(*multipart_payload([("a", "one.png", "image/png", b"old")]))
        await storage.receive(*multipart_payload([("a", "two.png", "image/png", b"new")]))

        assert (local_storage_dir / "avatars" / "avatar.png").read_bytes() == b"new"

    async def test_fixed_filename_keeps_per_type_extension(self, local_storage_dir: Path, multipart_payload) -> None:
        """Verify parts of different types get different extensions."""
        storage = DiskStorage("/", filename="scan", root=local_storage_dir)
        payload = multipart_payload(
            [("s", "a.png", "image/png", b"png"), ("s", "b.pdf", "application/pdf", b"pdf")]
        )

        await storage.receive(*payload)

        assert sorted(p.name for p in local_storage_dir.iterdir()) == ["scan.pdf", "scan.png"]

    async def test_reject_policy_raises_on_existing_file(self, local_storage_dir: Path, multipart_payload) -> None:
        """Verify reject refuses to replace an existing file."""
        storage = DiskStorage("avatars", filename="avatar", collision=CollisionPolicy.REJECT, root=local_storage_dir)
        await storage.receive(*multipart_payload([("a", "one.png", "image/png", b"kept")]))

        with pytest.raises(FileCollisionError):
            await storage.receive(*multipart_payload([("a", "two.png", "image/png", b"refused")]))

        assert (local_storage_dir / "avatars" / "avatar.png").read_bytes() == b"kept"

    async def test_auto_rename_policy_appends_counter(self, local_storage_dir: Path, multipart_payload) -> None:
        """Verify auto_rename keeps every file under a fresh suffix."""
        storage = DiskStorage("avatars", filename="avatar", collision="auto_rename", root=local_storage_dir)
        payload = multipart_payload(
            [
                ("a", "1.png", "image/png", b"one"),
                ("a", "2.png", "image/png", b"two"),
                ("a", "3.png", "image/png", b"three"),
            ]
        )

        files = await storage.receive(*payload)

        target = local_storage_dir / "avatars"
        assert [Path(f.path).name for f in files] == ["avatar.png", "avatar-1.png", "avatar-2.png"]
        assert (target / "avatar-2.png").read_bytes() == b"three"

    async def test_unknown_type_uses_fallback_extension(self, local_storage_dir: Path, multipart_payload) -> None:
        """Verify parts with unmapped content types are stored with the fallback extension."""
        storage = DiskStorage("/", filename="blob", root=local_storage_dir)
        await storage.receive(*multipart_payload([("b", "blob", "application/x-made-up", b"?")]))
        assert (local_storage_dir / "blob.bin").read_bytes() == b"?"

    async def test_directory_creation_failure_propagates(self, tmp_path: Path, multipart_payload) -> None:
        """Verify an unusable destination aborts the request."""
        blocker = tmp_path / "blocker"
        blocker.write_bytes(b"")
        storage = DiskStorage("sub", root=blocker)

        with pytest.raises(OSError):
            await storage.receive(*multipart_payload([("f", "a.txt", "text/plain", b"x")]))

    async def test_receive_files_from_robyn_mapping(self, local_storage_dir: Path) -> None:
        """Verify Robyn's pre-parsed files are written too."""
        storage = DiskStorage("robyn", root=local_storage_dir)

        files = await storage.receive_files({"notes.txt": b"hello"})

        assert files[0].content_type == "text/plain"
        assert Path(files[0].path).read_bytes() == b"hello"
