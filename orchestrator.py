"""Discovery orchestrator: routes a query through retrieval, fusion and personalization."""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeoutError
from enum import Enum
from typing import Optional, Callable, Any

from config.settings import Settings
from schemas.discovery import (
    RouteType,
    MatchType,
    RetrievalCandidate,
    RankedResult,
    UserDiscoveryContext,
    SearchLogEntry,
    RetrievalOutcome,
)

# Collaborator interfaces
from retrieval.base import BaseLexicalSearch, BaseVectorSearch, BaseEmbedder, BaseSiteCapabilities

# Reference collaborators
from retrieval.catalog import SkillCatalog
from retrieval.keyword_search import KeywordSearch
from retrieval.vector_search import HybridVectorSearch
from retrieval.embeddings import EmbeddingProvider, SkillEmbeddingIndex, create_embedder
from retrieval.capabilities import SiteCapabilities
from routing.query_classifier import QueryClassifier
from storage.sqlite_store import SQLiteDiscoveryStore
from search_logger import SearchLogger

logger = logging.getLogger(__name__)


class DiscoveryState(str, Enum):
    """States of the retrieval routing machine."""
    CLASSIFY_ROUTE = "classify_route"
    TRY_KEYWORD = "try_keyword"
    TRY_EMBED_THEN_VECTOR = "try_embed_then_vector"
    FUSED = "fused"
    EMPTY = "empty"


MATCH_RATIONALES = {
    MatchType.BOTH: 'Matches your search terms and is semantically related to "{query}"',
    MatchType.KEYWORD: 'Contains keywords matching "{query}"',
    MatchType.SEMANTIC: "Semantically similar to what you're looking for",
}


class _RoutingContext:
    """Request-local state carried between routing states."""

    def __init__(self, query: str, tenant_id: str, fetch_limit: int):
        self.query = query
        self.tenant_id = tenant_id
        self.fetch_limit = fetch_limit
        self.classified_route = RouteType.KEYWORD
        self.classification_reason = ""
        self.semantic_enabled = False
        self.embed_attempted = False
        self.route = RouteType.KEYWORD
        self.fell_back = False
        self.candidates: list[RetrievalCandidate] = []


class DiscoveryOrchestrator:
    """
    Ranks skills for a natural-language query.

    Each request runs classify -> capability gate -> retrieve (with one
    fallback) -> fuse -> rationale -> preference boost -> log -> truncate.
    `discover()` never raises: collaborator failures and timeouts move the
    routing machine to its next state, and side-effect failures fall back
    to safe defaults.
    """

    def __init__(
        self,
        classifier,
        capabilities: BaseSiteCapabilities,
        lexical_search: BaseLexicalSearch,
        vector_search: Optional[BaseVectorSearch] = None,
        embedder: Optional[BaseEmbedder] = None,
        preference_store=None,
        search_logger: Optional[SearchLogger] = None,
        settings: Optional[Settings] = None,
        max_workers: Optional[int] = None
    ):
        """
        Initialize orchestrator.

        Args:
            classifier: Object with `classify(query) -> ClassificationResult`
            capabilities: Tenant feature flags
            lexical_search: Keyword retrieval
            vector_search: Hybrid vector retrieval (semantic disabled when None)
            embedder: Query embedding backend (semantic disabled when None)
            preference_store: Object with `get_preferences(user_id, tenant_id)`;
                when None the actor's own preferred categories are used
            search_logger: Non-blocking sink with `log(entry)`
            settings: Application settings
            max_workers: Size of the shared collaborator thread pool (default:
                settings.collaborator_workers). A timed-out call keeps its
                worker until it returns, so this caps how many hung calls
                can be outstanding before later calls queue and time out.
        """
        self.settings = settings or Settings()
        self.classifier = classifier
        self.capabilities = capabilities
        self.lexical_search = lexical_search
        self.vector_search = vector_search
        self.embedder = embedder
        self.preference_store = preference_store
        self.search_logger = search_logger
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers or self.settings.collaborator_workers,
            thread_name_prefix="discovery"
        )

    @classmethod
    def from_settings(
        cls,
        settings: Optional[Settings] = None,
        tenant_id: Optional[str] = None,
        catalog: Optional[SkillCatalog] = None,
        store: Optional[SQLiteDiscoveryStore] = None
    ) -> "DiscoveryOrchestrator":
        """
        Build an orchestrator wired to the reference collaborators.

        Args:
            settings: Application settings
            tenant_id: Tenant whose skills keyword search may see
            catalog: Preloaded catalog (loaded from settings.catalog_path when None)
            store: SQLite store (opened at settings.db_path when None)

        Returns:
            Configured DiscoveryOrchestrator

        Raises:
            ValueError: If the embedding provider is not supported
        """
        settings = settings or Settings()
        catalog = catalog or SkillCatalog.from_csv(settings.catalog_path)
        store = store or SQLiteDiscoveryStore(db_path=settings.db_path)

        keyword_search = KeywordSearch(catalog, tenant_id=tenant_id)
        embedder = create_embedder(
            provider=EmbeddingProvider(settings.embedding_provider),
            api_key=settings.get_embedding_api_key(),
            base_url=settings.ollama_url if settings.embedding_provider == "ollama" else None,
            model=settings.ollama_model if settings.embedding_provider == "ollama" else None,
            timeout=settings.embedding_timeout,
        )
        logger.info(f"Embedding provider: {settings.embedding_provider} ({embedder.get_model_name()})")

        capabilities = SiteCapabilities(
            settings_path=settings.site_settings_path,
            cache_ttl=settings.settings_cache_ttl
        )

        vector_search = None
        if capabilities.semantic_enabled(tenant_id):
            index = SkillEmbeddingIndex(cache_dir=settings.embeddings_cache_dir)
            if index.build(catalog, embedder):
                vector_search = HybridVectorSearch(
                    catalog=catalog,
                    index=index,
                    keyword_search=keyword_search,
                    tenant_id=tenant_id,
                    rrf_k=settings.rrf_k
                )
            else:
                logger.warning("Skill embeddings unavailable, discovery will use keyword search only")

        return cls(
            classifier=QueryClassifier(),
            capabilities=capabilities,
            lexical_search=keyword_search,
            vector_search=vector_search,
            embedder=embedder,
            preference_store=store,
            search_logger=SearchLogger(store, max_queue_size=settings.log_queue_size),
            settings=settings,
        )

    def close(self):
        """Release the thread pool and drain the search log."""
        self._executor.shutdown(wait=False)
        if self.search_logger is not None:
            self.search_logger.close()

    # Entry point

    def discover(
        self,
        raw_query: Optional[str],
        actor: Optional[UserDiscoveryContext],
        limit: Optional[int] = None,
        cancel_event: Optional[threading.Event] = None
    ) -> list[RankedResult]:
        """
        Discover skills for a query.

        Args:
            raw_query: Query as typed by the user
            actor: Requesting user and tenant
            limit: Maximum results (default: settings.discover_limit)
            cancel_event: Set by the caller to abandon the request

        Returns:
            Ranked results, best first; [] when nothing can be returned
        """
        query = (raw_query or "").strip()
        if not query or actor is None or not actor.tenant_id:
            return []

        limit = self.settings.discover_limit if limit is None else max(0, limit)
        if limit == 0:
            return []

        outcome = self.route(query, actor.tenant_id, limit + self.settings.overfetch, cancel_event)
        if outcome is None or not outcome.candidates:
            return []

        results = self.fuse(outcome.candidates, query)

        if self._cancelled(cancel_event):
            return []

        preferred = self._load_preferred_categories(actor)
        results = self.apply_preference_boost(results, preferred)

        if self._cancelled(cancel_event):
            return []

        self._log_search(query, actor, outcome.route_type, len(results))

        logger.info(
            f"Discover '{query}' tenant={actor.tenant_id}: route={outcome.route_type.value} "
            f"(classified {outcome.classified_route.value}), {len(results)} results"
        )
        return results[:limit]

    # Routing state machine

    def route(
        self,
        query: str,
        tenant_id: str,
        fetch_limit: int,
        cancel_event: Optional[threading.Event] = None
    ) -> Optional[RetrievalOutcome]:
        """
        Run the routing machine until it reaches FUSED or EMPTY.

        Args:
            query: Trimmed, non-empty query
            tenant_id: Tenant ID
            fetch_limit: Candidates to request from each retrieval call
            cancel_event: Cancellation signal checked between states

        Returns:
            RetrievalOutcome (empty candidates when EMPTY), or None if cancelled
        """
        ctx = _RoutingContext(query, tenant_id, fetch_limit)
        handlers = {
            DiscoveryState.CLASSIFY_ROUTE: self._classify_route,
            DiscoveryState.TRY_KEYWORD: self._try_keyword,
            DiscoveryState.TRY_EMBED_THEN_VECTOR: self._try_embed_then_vector,
        }

        state = DiscoveryState.CLASSIFY_ROUTE
        while state not in (DiscoveryState.FUSED, DiscoveryState.EMPTY):
            if self._cancelled(cancel_event):
                logger.info(f"Discover '{query}' cancelled in {state.value}")
                return None
            next_state = handlers[state](ctx)
            logger.debug(f"{state.value} -> {next_state.value}")
            state = next_state

        if state == DiscoveryState.EMPTY:
            ctx.candidates = []

        return RetrievalOutcome(
            candidates=ctx.candidates,
            route_type=ctx.route,
            classified_route=ctx.classified_route,
            fell_back=ctx.fell_back,
            classification_reason=ctx.classification_reason,
        )

    def _classify_route(self, ctx: _RoutingContext) -> DiscoveryState:
        classification = self._call("classifier", self.classifier.classify, ctx.query)
        if classification is None:
            ctx.classified_route = RouteType.KEYWORD
            ctx.classification_reason = "Classifier unavailable"
        else:
            ctx.classified_route = classification.route_type
            ctx.classification_reason = classification.reason

        ctx.semantic_enabled = self._semantic_available(ctx.tenant_id)

        if ctx.classified_route in (RouteType.SEMANTIC, RouteType.HYBRID):
            if ctx.semantic_enabled:
                return DiscoveryState.TRY_EMBED_THEN_VECTOR
            logger.debug(f"Semantic search disabled for tenant {ctx.tenant_id}, using keyword")
        return DiscoveryState.TRY_KEYWORD

    def _try_keyword(self, ctx: _RoutingContext) -> DiscoveryState:
        candidates = self._call(
            "lexical search", self.lexical_search.search, ctx.query, ctx.fetch_limit, default=[]
        ) or []
        if candidates:
            ctx.candidates = candidates
            ctx.route = RouteType.KEYWORD
            return DiscoveryState.FUSED

        # One semantic fallback, only when it has not been tried yet
        if not ctx.semantic_enabled or ctx.embed_attempted:
            return DiscoveryState.EMPTY

        ctx.embed_attempted = True
        embedding = self._embed(ctx.query)
        if embedding is None:
            return DiscoveryState.EMPTY

        candidates = self._vector(ctx.query, embedding, ctx.fetch_limit)
        if not candidates:
            return DiscoveryState.EMPTY

        ctx.candidates = candidates
        ctx.route = RouteType.HYBRID
        ctx.fell_back = True
        return DiscoveryState.FUSED

    def _try_embed_then_vector(self, ctx: _RoutingContext) -> DiscoveryState:
        ctx.embed_attempted = True
        embedding = self._embed(ctx.query)
        if embedding is not None:
            candidates = self._vector(ctx.query, embedding, ctx.fetch_limit)
            if candidates:
                # Semantic requests are broadened to hybrid
                ctx.candidates = candidates
                ctx.route = RouteType.HYBRID
                return DiscoveryState.FUSED

        ctx.fell_back = True
        return DiscoveryState.TRY_KEYWORD

    def _semantic_available(self, tenant_id: str) -> bool:
        if self.embedder is None or self.vector_search is None:
            return False
        enabled = self._call(
            "site capabilities", self.capabilities.semantic_enabled, tenant_id, default=False
        )
        return bool(enabled)

    def _embed(self, query: str) -> Optional[list[float]]:
        embedding = self._call(
            "embedding generator",
            self.embedder.embed,
            query,
            timeout=self.settings.embedding_timeout
        )
        if embedding is None or len(embedding) == 0:
            return None
        return [float(x) for x in embedding]

    def _vector(self, query: str, embedding: list[float], limit: int) -> list[RetrievalCandidate]:
        return self._call(
            "vector search", self.vector_search.search, query, embedding, limit, default=[]
        ) or []

    # Fusion, rationale and personalization

    def fuse(self, candidates: list[RetrievalCandidate], query: str) -> list[RankedResult]:
        """
        Score candidates with reciprocal-rank fusion and attach rationales.

        Args:
            candidates: Retrieved candidates
            query: Trimmed query interpolated into rationales

        Returns:
            Results ordered by fusion score, ties by id
        """
        k = self.settings.rrf_k
        merged: dict[str, RetrievalCandidate] = {}
        for candidate in candidates:
            existing = merged.get(candidate.skill_id)
            if existing is None:
                merged[candidate.skill_id] = candidate
                continue
            # Same skill from both lists: keep the best rank of each kind
            merged[candidate.skill_id] = existing.model_copy(update={
                "lexical_rank": _min_rank(existing.lexical_rank, candidate.lexical_rank),
                "semantic_rank": _min_rank(existing.semantic_rank, candidate.semantic_rank),
            })

        results = []
        for candidate in merged.values():
            score = 0.0
            for rank in (candidate.lexical_rank, candidate.semantic_rank):
                if rank is not None:
                    score += 1.0 / (k + rank)

            match_type = self.match_type(candidate)
            skill = candidate.skill
            results.append(RankedResult(
                id=skill.id,
                name=skill.name,
                slug=skill.slug,
                description=skill.description,
                category=skill.category,
                total_uses=skill.total_uses,
                average_rating=skill.average_rating,
                match_type=match_type,
                match_rationale=MATCH_RATIONALES[match_type].format(query=query),
                fusion_score=score,
            ))

        results.sort(key=lambda r: (-r.fusion_score, r.id))
        return results

    @staticmethod
    def match_type(candidate: RetrievalCandidate) -> MatchType:
        """How a candidate matched: both ranks, lexical only, or semantic."""
        if candidate.lexical_rank is not None and candidate.semantic_rank is not None:
            return MatchType.BOTH
        if candidate.lexical_rank is not None:
            return MatchType.KEYWORD
        return MatchType.SEMANTIC

    def apply_preference_boost(
        self,
        results: list[RankedResult],
        preferred_categories
    ) -> list[RankedResult]:
        """
        Boost results in preferred categories and re-sort.

        Args:
            results: Fused results
            preferred_categories: Categories the user prefers

        Returns:
            New list ordered by boosted score, ties by id
        """
        preferred = set(preferred_categories or ())
        if not preferred:
            return list(results)

        boosted = [
            r.model_copy(update={
                "fusion_score": r.fusion_score * self.settings.preference_boost,
                "is_boosted": True,
            })
            if r.category in preferred else r
            for r in results
        ]
        boosted.sort(key=lambda r: (-r.fusion_score, r.id))
        return boosted

    def _load_preferred_categories(self, actor: UserDiscoveryContext) -> set[str]:
        if self.preference_store is None:
            return set(actor.preferred_categories)
        if not actor.user_id:
            return set()

        preferences = self._call(
            "preference store",
            self.preference_store.get_preferences,
            actor.user_id,
            actor.tenant_id
        )
        if preferences is None:
            return set()
        return set(preferences.preferred_categories)

    # Side effects

    def _log_search(
        self,
        query: str,
        actor: UserDiscoveryContext,
        route: RouteType,
        result_count: int
    ):
        if self.search_logger is None:
            return
        try:
            entry = SearchLogEntry(
                tenant_id=actor.tenant_id,
                user_id=actor.user_id,
                query=query,
                normalized_query=SearchLogEntry.normalize(query),
                result_count=result_count,
                search_type="discover",
                route_type=route,
            )
            self.search_logger.log(entry)
        except Exception as e:
            logger.warning(f"Search log failed: {e}")

    # Helpers

    def _call(
        self,
        name: str,
        fn: Callable[..., Any],
        *args,
        default: Any = None,
        timeout: Optional[float] = None
    ) -> Any:
        """Run a collaborator call on the shared pool; failure or timeout yields `default`."""
        timeout = self.settings.collaborator_timeout if timeout is None else timeout
        try:
            future = self._executor.submit(fn, *args)
        except RuntimeError as e:
            logger.warning(f"Cannot schedule {name}: {e}")
            return default

        try:
            return future.result(timeout=timeout)
        except FutureTimeoutError:
            future.cancel()
            logger.warning(f"{name} timed out after {timeout}s")
            return default
        except Exception as e:
            logger.warning(f"{name} failed: {e}")
            return default

    @staticmethod
    def _cancelled(cancel_event: Optional[threading.Event]) -> bool:
        return cancel_event is not None and cancel_event.is_set()


def _min_rank(a: Optional[int], b: Optional[int]) -> Optional[int]:
    if a is None:
        return b
    if b is None:
        return a
    return min(a, b)
