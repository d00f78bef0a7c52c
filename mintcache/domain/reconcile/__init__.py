from mintcache.domain.reconcile.service import ForkRepair, ReconciliationService

__all__ = ["ForkRepair", "ReconciliationService"]
