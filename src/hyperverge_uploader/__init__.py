"""Hyperverge Uploader - Send documents to the Hyperverge verification API."""

__version__ = "0.1.0"

from hyperverge_uploader.api_client import HypervergeAPIClient
from hyperverge_uploader.models import Action, BatchResult, UploadFailure, UploadSuccess
from hyperverge_uploader.sink import ResultSink
from hyperverge_uploader.uploader import BatchCollector, DocumentUploader
from hyperverge_uploader.utils import discover_files

__all__ = [
    "HypervergeAPIClient",
    "Action",
    "BatchResult",
    "UploadFailure",
    "UploadSuccess",
    "ResultSink",
    "BatchCollector",
    "DocumentUploader",
    "discover_files",
]
