"""
Display helpers for the gallery: human readable sizes, timestamps and
copyable embed snippets.
"""
from dataclasses import dataclass
from datetime import datetime, tzinfo
from html import escape
from typing import Optional

# Snippet kinds, in the order the detail view offers them
SNIPPET_KINDS = ("url", "html", "markdown", "html_icon", "html_product")

ICON_CLASSES = "w-10 h-10 rounded-full object-cover"
PRODUCT_CLASSES = "w-full max-w-md rounded-lg object-cover"


@dataclass(frozen=True)
class EmbedSnippets:
    """Ready-to-paste references to a public image URL."""
    url: str
    html: str
    markdown: str
    html_icon: str
    html_product: str
    
    def get(self, kind: str) -> str:
        if kind not in SNIPPET_KINDS:
            raise KeyError(f"Unknown snippet kind: {kind}")
        return getattr(self, kind)


def format_file_size(size: Optional[int]) -> str:
    """Format a byte count with 1024 thresholds (B, KB, MB)."""
    if not size:
        return "Unknown"
    if size < 1024:
        return f"{size} B"
    if size < 1024 * 1024:
        return f"{size / 1024:.1f} KB"
    return f"{size / 1024 / 1024:.2f} MB"


def format_timestamp(value: Optional[datetime], tz: Optional[tzinfo] = None) -> str:
    """Format a timestamp as local ``YYYY/M/D H:MM:SS``."""
    if value is None:
        return "Unknown"
    local = value.astimezone(tz)
    return f"{local.year}/{local.month}/{local.day} {local.hour}:{local.minute:02d}:{local.second:02d}"


def file_name_from_key(key: str) -> str:
    """Last path segment of an object key."""
    return key.rsplit("/", 1)[-1] or key


def generate_embed_code(url: str, alt: str) -> EmbedSnippets:
    src = escape(url, quote=True)
    alt_attr = escape(alt, quote=True)
    return EmbedSnippets(
        url=url,
        html=f'<img src="{src}" alt="{alt_attr}" />',
        markdown=f"![{alt}]({url})",
        html_icon=f'<img src="{src}" alt="{alt_attr}" class="{ICON_CLASSES}" />',
        html_product=f'<img src="{src}" alt="{alt_attr}" class="{PRODUCT_CLASSES}" />',
    )
