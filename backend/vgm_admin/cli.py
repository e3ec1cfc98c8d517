#!/usr/bin/env python3
"""
Command line front end for vgm-admin.

Usage:
    # Run the web app (admin page + API)
    vgm-admin serve

    # Upload images through a running instance
    vgm-admin upload photo.jpg banner.png

    # Browse what is stored
    vgm-admin list
    vgm-admin show uploads/0b7c9d6e-8a41-4d1e-9f57-2c7a3c1f0e55.jpg

Set API_BASE_URL (or pass --api-url) to talk to a non-local instance.
"""
import argparse
import asyncio
import sys
from pathlib import Path

import httpx

from vgm_admin.client.gallery import Gallery, GalleryState
from vgm_admin.client.uploader import DEFAULT_TIMEOUT, UploadStatus, Uploader
from vgm_admin.config import settings
from vgm_admin.utils.formatting import (
    SNIPPET_KINDS,
    file_name_from_key,
    format_file_size,
    format_timestamp,
)
from vgm_admin.utils.logging import configure_logging


def _print_progress(action, task):
    if action == "set_progress":
        print(f"  {task.name}: {task.progress}%")
    elif action == "set_status" and task.status is UploadStatus.UPLOADING:
        print(f"  {task.name}: uploading ({format_file_size(task.size)})")


async def run_upload(api_url: str, files: list) -> int:
    """Upload files; returns the process exit code."""
    async with httpx.AsyncClient(base_url=api_url, timeout=DEFAULT_TIMEOUT) as client:
        async with Uploader(client, make_previews=False) as uploader:
            uploader.queue.subscribe(_print_progress)
            uploader.add_files(files)

            pending = uploader.queue.pending()
            print(f"Files ({len(uploader.queue)}), uploading {len(pending)}...")
            await uploader.upload_all()

            failed = 0
            print()
            for task in uploader.queue:
                if task.status is UploadStatus.COMPLETED:
                    print(f"✅ {task.name} -> {task.result_url}")
                else:
                    failed += 1
                    print(f"❌ {task.name}: {task.error_message}")

    return 1 if failed else 0


async def run_list(api_url: str) -> int:
    async with httpx.AsyncClient(base_url=api_url) as client:
        gallery = Gallery(client)
        await gallery.load()

    if gallery.state is GalleryState.ERROR:
        print(f"ERROR: {gallery.error}")
        return 1

    print(f"Uploaded images ({len(gallery.images)})")
    for image in gallery.images:
        print(
            f"  {file_name_from_key(image.key)}  "
            f"{format_file_size(image.size):>10}  "
            f"{format_timestamp(image.last_modified):>20}  "
            f"{image.url}"
        )
    return 0


async def run_show(api_url: str, key: str) -> int:
    async with httpx.AsyncClient(base_url=api_url) as client:
        gallery = Gallery(client)
        await gallery.load()

    if gallery.state is GalleryState.ERROR:
        print(f"ERROR: {gallery.error}")
        return 1

    try:
        detail = gallery.select(key)
    except KeyError:
        print(f"ERROR: {key} not found")
        return 1

    print(detail.name)
    print(f"  Size:          {detail.size_text}")
    print(f"  Last modified: {detail.last_modified_text}")
    print(f"  URL:           {detail.url}")
    print()
    for kind in SNIPPET_KINDS:
        print(f"  [{kind}]")
        print(f"  {detail.snippets.get(kind)}")
    return 0


def run_serve(host: str, port: int) -> int:
    import uvicorn

    uvicorn.run(
        "vgm_admin.main:app",
        host=host,
        port=port,
        log_level=settings.log_level.lower(),
    )
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="vgm-admin",
        description="Upload images to Cloudflare R2 / S3 and browse them",
    )
    parser.add_argument("--api-url", default=settings.api_base_url,
                        help="Base URL of a running vgm-admin instance")
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve = subparsers.add_parser("serve", help="Run the web app")
    serve.add_argument("--host", default="0.0.0.0")
    serve.add_argument("--port", type=int, default=settings.port)

    upload = subparsers.add_parser("upload", help="Upload image files")
    upload.add_argument("files", nargs="+", type=Path)

    subparsers.add_parser("list", help="List uploaded images, newest first")

    show = subparsers.add_parser("show", help="Show one image with embed snippets")
    show.add_argument("key")

    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    if args.command == "serve":
        return run_serve(args.host, args.port)

    configure_logging("vgm-admin-cli", "WARNING")

    if args.command == "upload":
        missing = [str(path) for path in args.files if not path.is_file()]
        if missing:
            print(f"ERROR: not a file: {', '.join(missing)}")
            return 1
        return asyncio.run(run_upload(args.api_url, args.files))
    if args.command == "list":
        return asyncio.run(run_list(args.api_url))
    return asyncio.run(run_show(args.api_url, args.key))


if __name__ == '__main__':
    sys.exit(main())
