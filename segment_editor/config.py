import os

class Config:
    UNDO_DEPTH = int(os.getenv("SEGMENT_EDITOR_UNDO_DEPTH", "10"))
    DEVHUB_BASE_URL = os.getenv("SEGMENT_EDITOR_DEVHUB_URL", "http://localhost:3000")
    HTTP_TIMEOUT = float(os.getenv("SEGMENT_EDITOR_HTTP_TIMEOUT", "10"))
    LOG_LEVEL = os.getenv("SEGMENT_EDITOR_LOG_LEVEL", "WARNING")
