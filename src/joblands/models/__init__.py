from joblands.models.base import Base
from joblands.models.resume import StoredResume

__all__ = ["Base", "StoredResume"]
