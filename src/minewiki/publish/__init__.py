# ABOUTME: Publishing layer for the scraped collections
# ABOUTME: Pipeline Stage 3: JSON collections → static API files and object storage

"""
Publish Layer: data/ and public/ → static host

This layer handles:
- Generating the static JSON API under public/api
- Uploading images and API files to S3-compatible storage

Data Flow: persistence/ → publish/ → R2 bucket
"""

from .api import build_static_api
from .upload import R2Uploader, UploadConfigError, UploadResult, UploadSettings, load_upload_settings

__all__ = [
    "build_static_api",
    "R2Uploader",
    "UploadConfigError",
    "UploadResult",
    "UploadSettings",
    "load_upload_settings",
]
