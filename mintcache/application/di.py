from dishka import AsyncContainer, Provider, from_context, make_async_container, provide

from mintcache.config import Config
from mintcache.domain.gateway import GatewayResolver
from mintcache.domain.media.port import (
    ContentPinner,
    MediaDownloader,
    RenditionStorage,
    Transcoder,
)
from mintcache.domain.media.service import MediaService, OutcomePublisher
from mintcache.domain.reconcile import ReconciliationService
from mintcache.domain.sync import SourceSyncService
from mintcache.domain.token.model import RetryPolicy
from mintcache.domain.token.port import RemoteSourceRegistry, TokenRepository
from mintcache.domain.token.service import WorkSelector
from mintcache.infrastructure.http.di import HttpProvider
from mintcache.infrastructure.media.di import MediaProvider
from mintcache.infrastructure.persistence.di import PersistenceProvider
from mintcache.infrastructure.pinning.di import PinningProvider
from mintcache.infrastructure.remote.di import RemoteProvider
from mintcache.util.di.scope import Scope


class ServiceProvider(Provider):
    """Domain services, built per unit of work from APP-scoped adapters."""

    config = from_context(provides=Config, scope=Scope.APP)

    @provide(scope=Scope.APP)
    def get_retry_policy(self, config: Config) -> RetryPolicy:
        return config.retry.policy()

    @provide(scope=Scope.APP)
    def get_resolver(self, config: Config) -> GatewayResolver:
        return GatewayResolver(config.gateway.root, config.gateway.known_gateways)

    publisher = provide(OutcomePublisher, scope=Scope.UOW)

    @provide(scope=Scope.UOW)
    def get_selector(
        self, tokens: TokenRepository, policy: RetryPolicy, config: Config
    ) -> WorkSelector:
        return WorkSelector(tokens=tokens, policy=policy, page_size=config.worker.page_size)

    @provide(scope=Scope.UOW)
    def get_sync_service(
        self,
        tokens: TokenRepository,
        remotes: RemoteSourceRegistry,
        resolver: GatewayResolver,
        pinner: ContentPinner,
        policy: RetryPolicy,
        config: Config,
    ) -> SourceSyncService:
        return SourceSyncService(
            tokens=tokens,
            remotes=remotes,
            resolver=resolver,
            pinner=pinner,
            policy=policy,
            page_size=config.sync.page_size,
        )

    @provide(scope=Scope.UOW)
    def get_reconciliation_service(
        self,
        tokens: TokenRepository,
        remotes: RemoteSourceRegistry,
        publisher: OutcomePublisher,
        config: Config,
    ) -> ReconciliationService:
        return ReconciliationService(
            tokens=tokens,
            remotes=remotes,
            publisher=publisher,
            batch_step=config.reconcile.batch_step,
            retry_delay=config.reconcile.retry_delay,
        )

    @provide(scope=Scope.UOW)
    def get_media_service(
        self,
        tokens: TokenRepository,
        resolver: GatewayResolver,
        downloader: MediaDownloader,
        transcoder: Transcoder,
        storage: RenditionStorage,
        publisher: OutcomePublisher,
        pinner: ContentPinner,
        policy: RetryPolicy,
        config: Config,
    ) -> MediaService:
        return MediaService(
            tokens=tokens,
            resolver=resolver,
            downloader=downloader,
            transcoder=transcoder,
            storage=storage,
            publisher=publisher,
            pinner=pinner,
            policy=policy,
            max_url_length=config.media.max_url_length,
        )


def create_container(config: Config | None = None) -> AsyncContainer:
    # Pydantic Settings populates from env vars at runtime
    config = config or Config()  # type: ignore[call-arg]

    return make_async_container(
        ServiceProvider(),
        PersistenceProvider(),
        RemoteProvider(),
        HttpProvider(),
        MediaProvider(),
        PinningProvider(),
        context={Config: config},
        scopes=Scope,  # type: ignore[arg-type]  # Custom scope class
    )
