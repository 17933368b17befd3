import os
from fastapi import UploadFile

ALLOWED_EXTENSIONS = [".csv"]
ALLOWED_CONTENT_TYPES = ["text/csv"]


def read_uploaded_csv(file: UploadFile) -> bytes:
    """
    Return the raw bytes of an uploaded CSV.
    Accepts a .csv extension or a text/csv content type.
    """
    ext = os.path.splitext(file.filename or "")[1]
    if ext.lower() not in ALLOWED_EXTENSIONS and file.content_type not in ALLOWED_CONTENT_TYPES:
        raise ValueError("Only CSV files (.csv) are supported.")

    return file.file.read()
