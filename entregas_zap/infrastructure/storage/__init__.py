from .client import SupabaseStorageClient, get_storage_client

__all__ = ["SupabaseStorageClient", "get_storage_client"]
