from reelvault.db.models.user import User
from reelvault.db.models.video_metadata import VideoMetadata
from reelvault.db.models.upload_history import UploadHistoryEntry

__all__ = ["User", "VideoMetadata", "UploadHistoryEntry"]
