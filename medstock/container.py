# medstock/container.py
from functools import lru_cache

from medstock.config import get_settings, load_actor_registry
from medstock.domain.models import ActorRegistry
from medstock.infra.cache.redis_cache import RedisCache
from medstock.infra.llm.openai_adapter import OpenAISuggestionAdapter
from medstock.infra.repo.mongo_repo import MongoSnapshotRepo

from medstock.services.prompt_service import PromptService
from medstock.services.report_service import ReportService
from medstock.services.session_state import SessionStateService
from medstock.services.suggestion_service import SuggestionService

from medstock.application.inventory_store import InventoryStore
from medstock.application.inventory_use_case import InventoryUseCase
from medstock.application.import_use_case import ShareImportUseCase
from medstock.application.share_codec import SharePayloadCodec

@lru_cache
def _cache() -> RedisCache: return RedisCache.from_env()

@lru_cache
def _repo() -> MongoSnapshotRepo: return MongoSnapshotRepo()

@lru_cache
def _prompts() -> PromptService: return PromptService()

@lru_cache
def _llm() -> OpenAISuggestionAdapter: return OpenAISuggestionAdapter(prompts=_prompts())

@lru_cache
def _registry() -> ActorRegistry: return load_actor_registry()

@lru_cache
def _inventory() -> InventoryUseCase:
    # satu store per proses; semua request berbagi snapshot yang sama
    return InventoryUseCase(store=InventoryStore(_registry()), repo=_repo())

@lru_cache
def _sessions() -> SessionStateService:
    return SessionStateService(_cache(), ttl=get_settings().import_ttl_seconds)

@lru_cache
def _share() -> ShareImportUseCase:
    s = get_settings()
    return ShareImportUseCase(
        inventory=_inventory(),
        sessions=_sessions(),
        codec=SharePayloadCodec(),
        base_url=s.share_base_url,
        compress_default=s.share_compress,
    )

@lru_cache
def _suggestions() -> SuggestionService: return SuggestionService(_llm())

@lru_cache
def _reports() -> ReportService: return ReportService(_llm())

def get_registry() -> ActorRegistry: return _registry()
def get_inventory_uc() -> InventoryUseCase: return _inventory()
def get_share_uc() -> ShareImportUseCase: return _share()
def get_suggestion_service() -> SuggestionService: return _suggestions()
def get_report_service() -> ReportService: return _reports()
def get_snapshot_repo() -> MongoSnapshotRepo: return _repo()
def get_cache() -> RedisCache: return _cache()
def get_llm() -> OpenAISuggestionAdapter: return _llm()
