from mintcache.domain.sync.service import SourceSyncService, SyncResult

__all__ = ["SourceSyncService", "SyncResult"]
