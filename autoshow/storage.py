"""
Document writes.

Finished documents go either to a local path or, when the destination is a
``gs://bucket/path`` URI, to Cloud Storage.  Local writes open and close the
file within the call so no handle outlives it.
"""

import logging
from pathlib import Path
from typing import Tuple

from google.cloud import storage

logger = logging.getLogger(__name__)

GCS_SCHEME = "gs://"


def split_gcs_uri(uri: str) -> Tuple[str, str]:
    """Split ``gs://bucket/path/to/blob`` into bucket name and blob path."""
    bucket, _, blob_path = uri[len(GCS_SCHEME):].partition("/")
    if not bucket or not blob_path:
        raise ValueError(f"Invalid Cloud Storage URI: {uri}")
    return bucket, blob_path


def write_text(path: str, content: str) -> str:
    Path(path).parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        f.write(content)
    return path


def write_document(content: str, destination: str) -> str:
    """Write ``content`` to ``destination`` and return where it went."""
    if destination.startswith(GCS_SCHEME):
        bucket_name, blob_path = split_gcs_uri(destination)
        client = storage.Client()
        blob = client.bucket(bucket_name).blob(blob_path)
        blob.upload_from_string(content, content_type="text/markdown")
    else:
        write_text(destination, content)
    logger.info("Saved document to %s", destination)
    return destination
