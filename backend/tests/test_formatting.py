"""
Tests for display helpers and shared upload constraints.
"""
import pytest
from datetime import datetime, timedelta, timezone

from vgm_admin.utils.formatting import (
    file_name_from_key,
    format_file_size,
    format_timestamp,
    generate_embed_code,
)
from vgm_admin.utils.validation import check_image


class TestFormatFileSize:
    
    @pytest.mark.parametrize("size,expected", [
        (None, "Unknown"),
        (0, "Unknown"),
        (1, "1 B"),
        (1023, "1023 B"),
        (1024, "1.0 KB"),
        (1536, "1.5 KB"),
        (1024 * 1024, "1.00 MB"),
        (2097152, "2.00 MB"),
        (10 * 1024 * 1024 - 1, "10.00 MB"),
    ])
    def test_thresholds(self, size, expected):
        assert format_file_size(size) == expected


class TestFormatTimestamp:
    
    def test_missing(self):
        assert format_timestamp(None) == "Unknown"
    
    def test_utc(self):
        value = datetime(2025, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
        assert format_timestamp(value, tz=timezone.utc) == "2025/1/2 3:04:05"
    
    def test_converted_to_target_zone(self):
        value = datetime(2025, 1, 2, 20, 0, 0, tzinfo=timezone.utc)
        tokyo = timezone(timedelta(hours=9))
        assert format_timestamp(value, tz=tokyo) == "2025/1/3 5:00:00"


class TestEmbedCode:
    
    def test_snippets(self):
        url = "https://cdn.example.com/uploads/a.png"
        snippets = generate_embed_code(url, "a.png")
        
        assert snippets.url == url
        assert snippets.html == f'<img src="{url}" alt="a.png" />'
        assert snippets.markdown == f"![a.png]({url})"
        assert 'class="w-10 h-10 rounded-full object-cover"' in snippets.html_icon
        assert 'class="w-full max-w-md rounded-lg object-cover"' in snippets.html_product
    
    def test_attribute_values_escaped(self):
        snippets = generate_embed_code('https://cdn/x.png?a=1&b="2"', "x.png")
        
        assert '&quot;' in snippets.html
        assert '"2"' not in snippets.html
    
    def test_unknown_kind(self):
        with pytest.raises(KeyError):
            generate_embed_code("u", "a").get("bbcode")
    
    def test_file_name_from_key(self):
        assert file_name_from_key("uploads/abc.jpg") == "abc.jpg"
        assert file_name_from_key("abc.jpg") == "abc.jpg"


class TestCheckImage:
    
    @pytest.mark.parametrize("content_type,size,expected", [
        ("image/jpeg", 100, None),
        ("image/png", 10 * 1024 * 1024, None),
        ("image/gif", 10 * 1024 * 1024 + 1, "file_too_large"),
        ("image/webp", 1, None),
        ("image/bmp", 1, "invalid_type"),
        (None, 1, "invalid_type"),
        ("", 1, "invalid_type"),
    ])
    def test_check_image(self, content_type, size, expected):
        assert check_image(content_type, size) == expected
