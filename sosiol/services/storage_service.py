from sosiol.config import settings

# Singleton storage instance
_storage = None


def get_storage():
    """Get or create the global upload store (local HashFS)."""
    global _storage
    if _storage is None:
        from sosiol.storage.hashfs import HashFS
        _storage = HashFS(root_dir=settings.upload_store_path)
    return _storage
