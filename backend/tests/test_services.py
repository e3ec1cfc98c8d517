"""
Tests for service layer business logic.
"""
import logging
import pytest
from datetime import datetime, timezone

from vgm_admin.config import Settings
from vgm_admin.schemas.image import StoredImage
from vgm_admin.services.image_service import (
    ImageService,
    ImageValidationError,
    UPLOAD_PREFIX,
)
from vgm_admin.storage.r2_client import StorageError


class TestKeyGeneration:
    """Tests for object key and URL generation."""
    
    @pytest.mark.parametrize("filename,content_type,expected", [
        ("photo.jpg", "image/jpeg", "jpg"),
        ("PHOTO.JPEG", "image/jpeg", "jpeg"),
        ("archive.tar.gif", "image/gif", "gif"),
        ("no-extension", "image/png", "png"),
        ("", "image/webp", "webp"),
        (None, "image/jpeg", "jpg"),
        ("..\\..\\evil.png", "image/png", "png"),
        ("weird.p/ng", "image/png", "png"),
        ("trailing.", "image/gif", "gif"),
    ])
    def test_get_extension(self, filename, content_type, expected):
        assert ImageService.get_extension(filename, content_type) == expected
    
    def test_generate_object_key_unique_under_prefix(self):
        """Test keys are namespaced and never repeat."""
        keys = {ImageService.generate_object_key("photo.jpg", "image/jpeg") for _ in range(200)}
        
        assert len(keys) == 200
        for key in keys:
            assert key.startswith(UPLOAD_PREFIX)
            assert key.endswith(".jpg")
            assert "/" not in key[len(UPLOAD_PREFIX):]
    
    def test_public_url(self, image_service: ImageService):
        assert image_service.public_url("uploads/x.png") == "https://images.example.com/uploads/x.png"
    
    def test_public_url_trailing_slash_stripped(self, r2_client):
        service = ImageService(r2_client, config=Settings(r2_public_url="https://cdn.example.com/"))
        
        assert service.public_url("uploads/x.png") == "https://cdn.example.com/uploads/x.png"


class TestValidation:
    """Tests for ImageService.validate_upload."""
    
    def test_missing_file(self, image_service: ImageService):
        with pytest.raises(ImageValidationError) as exc_info:
            image_service.validate_upload(None, None, None)
        assert exc_info.value.reason == "missing_file"
        assert exc_info.value.message == "File is required"
    
    def test_invalid_type_checked_before_size(self, image_service: ImageService):
        with pytest.raises(ImageValidationError) as exc_info:
            image_service.validate_upload("scan.bmp", "image/bmp", 50 * 1024 * 1024)
        assert exc_info.value.reason == "invalid_type"
    
    def test_too_large(self, image_service: ImageService):
        with pytest.raises(ImageValidationError) as exc_info:
            image_service.validate_upload("big.png", "image/png", 10 * 1024 * 1024 + 1)
        assert exc_info.value.reason == "file_too_large"
    
    def test_content_type_case_insensitive(self, image_service: ImageService):
        image_service.validate_upload("photo.jpg", "IMAGE/JPEG", 1024)
    
    def test_rejection_logged_with_filename(self, image_service: ImageService, caplog):
        """Test the rejection record carries the uploaded name and reason."""
        with caplog.at_level(logging.WARNING, logger="vgm_admin.services.image_service"):
            with pytest.raises(ImageValidationError):
                image_service.validate_upload("scan.bmp", "image/bmp", 64)
        
        [record] = [r for r in caplog.records if getattr(r, "event", None) == "upload_rejected"]
        assert record.original_filename == "scan.bmp"
        assert record.reason == "invalid_type"
        assert record.content_type == "image/bmp"


class TestUploadImage:
    """Tests for ImageService.upload_image."""
    
    def test_upload_writes_once(self, image_service: ImageService, fake_s3):
        image = image_service.upload_image("photo.jpg", "image/jpeg", b"\xff\xd8\xff\xe0data")
        
        assert fake_s3.put_calls == 1
        assert image.key in fake_s3.objects
        assert image.url == f"https://images.example.com/{image.key}"
        assert image.size == 8
    
    def test_rejected_upload_writes_nothing(self, image_service: ImageService, fake_s3):
        with pytest.raises(ImageValidationError):
            image_service.upload_image("anim.svg", "image/svg+xml", b"<svg/>")
        assert fake_s3.put_calls == 0
    
    def test_storage_error_propagates(self, image_service: ImageService, fake_s3):
        fake_s3.fail_operation = "PutObject"
        with pytest.raises(StorageError) as exc_info:
            image_service.upload_image("photo.jpg", "image/jpeg", b"data")
        assert exc_info.value.operation == "put_object"


class TestListImages:
    """Tests for ImageService.list_images."""
    
    def test_sort_newest_first(self, image_service: ImageService, fake_s3):
        fake_s3.add("uploads/old.jpg", 1, datetime(2023, 1, 1, tzinfo=timezone.utc))
        fake_s3.add("uploads/new.jpg", 2, datetime(2024, 1, 1, tzinfo=timezone.utc))
        fake_s3.add("uploads/mid.jpg", 3, datetime(2023, 6, 1, tzinfo=timezone.utc))
        
        keys = [i.key for i in image_service.list_images()]
        
        assert keys == ["uploads/new.jpg", "uploads/mid.jpg", "uploads/old.jpg"]
    
    def test_marker_filtered(self, image_service: ImageService, fake_s3):
        fake_s3.add("uploads/", 0, datetime(2024, 1, 1, tzinfo=timezone.utc))
        
        assert image_service.list_images() == []
    
    def test_missing_timestamps_compare_equal(self, image_service: ImageService, fake_s3):
        """Test an entry without a timestamp does not move relative to its neighbours."""
        fake_s3.add("uploads/a.jpg", 1, datetime(2023, 1, 1, tzinfo=timezone.utc))
        fake_s3.add("uploads/b.jpg", 2)
        fake_s3.add("uploads/c.jpg", 3, datetime(2024, 1, 1, tzinfo=timezone.utc))
        
        images = image_service.list_images()
        
        # b compares equal to both neighbours, so the listing order stands
        assert [i.key for i in images] == ["uploads/a.jpg", "uploads/b.jpg", "uploads/c.jpg"]
        assert images[1].last_modified is None
    
    def test_list_error_propagates(self, image_service: ImageService, fake_s3):
        fake_s3.fail_operation = "ListObjectsV2"
        with pytest.raises(StorageError):
            image_service.list_images()
    
    def test_returns_stored_image_models(self, image_service: ImageService, fake_s3):
        fake_s3.add("uploads/a.webp", 512, datetime(2024, 1, 1, tzinfo=timezone.utc))
        
        [image] = image_service.list_images()
        
        assert isinstance(image, StoredImage)
        assert image.size == 512
        assert image.url == "https://images.example.com/uploads/a.webp"
