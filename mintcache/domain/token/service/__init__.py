from mintcache.domain.token.service.selector import WorkSelector

__all__ = ["WorkSelector"]
