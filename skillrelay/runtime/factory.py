"""Bootstrap: build stores, clients and turn processors from Settings."""

from dataclasses import dataclass, field

import redis.asyncio as redis

from skillrelay.config import Settings, get_settings
from skillrelay.config.models import IdentityConfig, MutexConfig, SkillsConfig, StorageConfig
from skillrelay.conversation.store import ConversationStateStore
from skillrelay.conversation.stores import (
    InMemoryConversationStateStore,
    RedisConversationStateStore,
)
from skillrelay.dialogs.delegation import BEGIN_SKILL_EVENT
from skillrelay.flows import MAIN_FLOW, MENU_FLOW, SKILL_FLOW, MainFlow, MenuFlow, SkillFlow
from skillrelay.identity import (
    HttpTokenExchangeClient,
    MockTokenExchangeClient,
    TokenExchangeClient,
)
from skillrelay.observability.logging import get_logger
from skillrelay.runtime.mutex import (
    ConversationMutex,
    LocalConversationMutex,
    RedisConversationMutex,
)
from skillrelay.runtime.turn_processor import TurnProcessor
from skillrelay.skills import (
    HttpSkillClient,
    InProcessSkillClient,
    SkillClient,
    SkillConversationIdFactory,
    SkillHandler,
    SkillRef,
)

logger = get_logger(__name__)


def create_redis_client(config: StorageConfig) -> redis.Redis:
    if not config.connection_url:
        raise ValueError("storage.connection_url is required for the redis backend")
    return redis.from_url(config.connection_url, decode_responses=True)


def create_state_store(
    config: StorageConfig,
    namespace: str,
    client: redis.Redis | None = None,
) -> ConversationStateStore:
    """Create the state store for one bot.

    Each bot gets its own namespace so root, skill and menu conversations
    never share records.
    """
    if config.backend == "inmemory":
        return InMemoryConversationStateStore()
    scoped = config.model_copy(update={"key_prefix": f"{config.key_prefix}:{namespace}"})
    return RedisConversationStateStore(client or create_redis_client(config), scoped)


def create_token_client(config: IdentityConfig) -> TokenExchangeClient:
    if config.backend == "mock":
        return MockTokenExchangeClient()
    return HttpTokenExchangeClient(base_url=config.base_url, timeout=config.timeout_seconds)


def create_mutex(
    config: MutexConfig,
    storage: StorageConfig,
    client: redis.Redis | None = None,
) -> ConversationMutex:
    if config.backend == "local":
        return LocalConversationMutex(blocking_timeout=config.blocking_timeout)
    return RedisConversationMutex(
        client or create_redis_client(storage),
        lock_timeout=config.lock_timeout,
        blocking_timeout=config.blocking_timeout,
    )


def resolve_target_skill(config: SkillsConfig) -> SkillRef:
    """The skill MainFlow delegates to.

    Raises:
        ValueError: If the target skill is not configured
    """
    endpoint = config.skills.get(config.target_skill_id)
    if endpoint is None:
        raise ValueError(
            f"Skill '{config.target_skill_id}' is not configured under skills.skills"
        )
    return SkillRef(
        skill_id=config.target_skill_id,
        app_id=endpoint.app_id,
        endpoint=endpoint.endpoint,
    )


def build_skill_processor(
    settings: Settings,
    state_store: ConversationStateStore,
    token_client: TokenExchangeClient,
    mutex: ConversationMutex,
) -> TurnProcessor:
    flow = SkillFlow(
        connection_name=settings.skill.connection_name,
        token_exchange_uri=settings.skill.token_exchange_uri,
    )
    return TurnProcessor(
        name="skill",
        registry=flow.register(),
        root_dialog_id=SKILL_FLOW,
        state_store=state_store,
        token_client=token_client,
        mutex=mutex,
        restart_events=[BEGIN_SKILL_EVENT],
    )


def build_root_processor(
    settings: Settings,
    state_store: ConversationStateStore,
    token_client: TokenExchangeClient,
    mutex: ConversationMutex,
    skill_client: SkillClient,
) -> TurnProcessor:
    flow = MainFlow(
        connection_name=settings.bot.connection_name,
        skill=resolve_target_skill(settings.skills),
        skill_client=skill_client,
        conversation_ids=SkillConversationIdFactory(),
        skill_timeout_seconds=settings.skills.timeout_seconds,
    )
    return TurnProcessor(
        name="root",
        registry=flow.register(),
        root_dialog_id=MAIN_FLOW,
        state_store=state_store,
        token_client=token_client,
        mutex=mutex,
        skill_client=skill_client,
        skill_timeout_seconds=settings.skills.timeout_seconds,
    )


def build_menu_processor(
    state_store: ConversationStateStore,
    token_client: TokenExchangeClient,
    mutex: ConversationMutex,
) -> TurnProcessor:
    flow = MenuFlow()
    return TurnProcessor(
        name="menu",
        registry=flow.register(),
        root_dialog_id=MENU_FLOW,
        state_store=state_store,
        token_client=token_client,
        mutex=mutex,
        on_conversation_update=flow.on_conversation_update,
    )


@dataclass
class Runtime:
    """Everything the API needs, built from one Settings instance."""

    root: TurnProcessor
    skill: TurnProcessor
    menu: TurnProcessor
    skill_handler: SkillHandler
    token_client: TokenExchangeClient
    skill_client: SkillClient
    state_stores: dict[str, ConversationStateStore] = field(default_factory=dict)

    async def close(self) -> None:
        await self.skill_client.close()
        await self.token_client.close()


def build_runtime(
    settings: Settings | None = None,
    token_client: TokenExchangeClient | None = None,
    skill_client: SkillClient | None = None,
) -> Runtime:
    """Build root, skill and menu processors sharing one identity client."""
    settings = settings or get_settings()
    token_client = token_client or create_token_client(settings.identity)

    redis_client = None
    if settings.storage.backend == "redis" or settings.mutex.backend == "redis":
        redis_client = create_redis_client(settings.storage)

    stores = {
        name: create_state_store(settings.storage, name, redis_client)
        for name in ("root", "skill", "menu")
    }
    mutex = create_mutex(settings.mutex, settings.storage, redis_client)

    skill = build_skill_processor(settings, stores["skill"], token_client, mutex)
    skill_handler = SkillHandler(skill, allowed_callers=settings.skill.allowed_callers)

    if skill_client is None:
        if settings.skills.transport == "inprocess":
            target = resolve_target_skill(settings.skills)
            skill_client = InProcessSkillClient(
                caller_id=settings.bot.bot_id,
                handlers={target.skill_id: skill_handler},
            )
        else:
            skill_client = HttpSkillClient(
                caller_id=settings.bot.bot_id,
                timeout=settings.skills.timeout_seconds,
            )

    root = build_root_processor(settings, stores["root"], token_client, mutex, skill_client)
    menu = build_menu_processor(stores["menu"], token_client, mutex)

    logger.info(
        "runtime_built",
        storage_backend=settings.storage.backend,
        mutex_backend=settings.mutex.backend,
        skill_transport=settings.skills.transport,
        target_skill=settings.skills.target_skill_id,
    )
    return Runtime(
        root=root,
        skill=skill,
        menu=menu,
        skill_handler=skill_handler,
        token_client=token_client,
        skill_client=skill_client,
        state_stores=stores,
    )
