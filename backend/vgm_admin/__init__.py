"""
vgm-admin: upload images to Cloudflare R2 / S3 and browse what is stored there.
"""
__version__ = "0.1.0"
