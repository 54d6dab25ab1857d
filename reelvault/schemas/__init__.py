from reelvault.schemas.storage import StorageHistoryPoint, StorageUsageOut
from reelvault.schemas.users import UserCreate, UserOut
from reelvault.schemas.videos import RenameIn, RenameOut, SuccessOut, UploadOut, VideoOut

__all__ = [
    "StorageHistoryPoint",
    "StorageUsageOut",
    "UserCreate",
    "UserOut",
    "RenameIn",
    "RenameOut",
    "SuccessOut",
    "UploadOut",
    "VideoOut",
]
