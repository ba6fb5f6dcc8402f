import logging
import threading
import time
from concurrent.futures import FIRST_COMPLETED, ThreadPoolExecutor, wait

from config import settings
from config.search_policy import default_search_policy
from engine.context import SearchContext, context_key, normalize_label
from engine.errors import AlternateFetchFailed, ProviderTransportError, ProviderUnavailable
from engine.fallback import mean_confidence, should_trigger_fallback
from engine.json_utils import safe_json_dumps
from engine.learning import learn_from_search
from engine.pattern_cache import PatternCache
from engine.query_expansion import generate_alternate_terms
from engine.ranking import aggregate_filter_reasons, combine_and_rank, disqualified_candidates
from engine.search_scoring import score_candidates
from engine.thresholds import adaptive_thresholds
from engine.types import (
    STRATEGY_FALLBACK_ENHANCED,
    STRATEGY_PRIMARY_ONLY,
    CandidateItem,
    ProviderOutcome,
    SearchFeedback,
    SearchFilters,
    SearchResult,
)

# Stages a search moves through, in order. FALLBACK_SEARCH is skipped when the
# primary pass is good enough.
SEARCH_STAGES = (
    "init",
    "primary_search",
    "scoring",
    "fallback_check",
    "fallback_search",
    "combine",
    "learn",
    "metrics_update",
    "done",
)


def _log_event(level, message, **fields):
    payload = {"message": message, **fields}
    try:
        logging.log(level, safe_json_dumps(payload, sort_keys=True))
    except Exception as exc:
        logging.log(level, f"log_event_serialization_failed: {exc} message={message}")


# Helper to run one provider query safely
def _run_provider_search(provider, query, max_results, filters):
    """
    Execute a single provider query.
    - Provider exceptions become an error outcome
    - Non-candidate entries are dropped here
    - Never raises
    """
    started = time.monotonic()
    try:
        items = provider.search(query, max_results, filters)
    except Exception as exc:
        elapsed_ms = int((time.monotonic() - started) * 1000)
        logging.exception(
            "provider_search_exception",
            extra={
                "provider": getattr(provider, "name", repr(provider)),
                "query": query,
                "elapsed_ms": elapsed_ms,
                "error": str(exc),
            },
        )
        return ProviderOutcome.failed(query, exc, elapsed_ms=elapsed_ms)
    elapsed_ms = int((time.monotonic() - started) * 1000)
    valid = [item for item in items or () if isinstance(item, CandidateItem) and item.id]
    return ProviderOutcome.from_items(query, valid, elapsed_ms=elapsed_ms)


class SearchMetrics:
    """Process-local search counters; best effort, safe to reset."""

    def __init__(self):
        self._lock = threading.Lock()
        self._total = 0
        self._successful = 0
        self._fallbacks = 0
        self._confidence_sum = 0.0

    def record(self, *, average_confidence, successful, fallback_triggered):
        with self._lock:
            self._total += 1
            self._confidence_sum += float(average_confidence)
            if successful:
                self._successful += 1
            if fallback_triggered:
                self._fallbacks += 1

    def reset(self):
        with self._lock:
            self._total = 0
            self._successful = 0
            self._fallbacks = 0
            self._confidence_sum = 0.0

    def snapshot(self, *, cache_size=0):
        with self._lock:
            total = self._total
            return {
                "total_searches": total,
                "successful_searches": self._successful,
                "success_rate": (self._successful / total * 100) if total else 0.0,
                "fallback_triggered": self._fallbacks,
                "fallback_rate": (self._fallbacks / total * 100) if total else 0.0,
                "average_confidence": (self._confidence_sum / total) if total else 0.0,
                "cache_size": cache_size,
            }


class ContextualSearchService:
    def __init__(
        self,
        provider,
        *,
        policy=None,
        pattern_cache=None,
        threshold_provider=None,
        max_alternate_terms=None,
        max_parallel_requests=None,
        max_results=None,
        results_per_query=None,
        request_timeout_seconds=None,
        success_confidence=None,
    ):
        self.provider = provider
        self.policy = policy or default_search_policy()
        self.pattern_cache = pattern_cache if pattern_cache is not None else PatternCache(
            max_terms_per_key=settings.PATTERN_CACHE_TERMS_PER_KEY,
            max_keys=settings.PATTERN_CACHE_MAX_KEYS,
        )
        self.threshold_provider = threshold_provider or (lambda context: adaptive_thresholds(context, self.policy))
        self.max_alternate_terms = max(0, int(
            max_alternate_terms if max_alternate_terms is not None else settings.MAX_ALTERNATE_TERMS
        ))
        self.max_parallel_requests = max(1, int(
            max_parallel_requests if max_parallel_requests is not None else settings.MAX_PARALLEL_REQUESTS
        ))
        self.max_results = int(max_results if max_results is not None else settings.MAX_COMBINED_RESULTS)
        self.results_per_query = int(results_per_query if results_per_query is not None else settings.RESULTS_PER_QUERY)
        timeout = request_timeout_seconds if request_timeout_seconds is not None else settings.REQUEST_TIMEOUT_SECONDS
        self.request_timeout_seconds = float(timeout) if timeout else None
        self.success_confidence = int(
            success_confidence if success_confidence is not None else settings.SUCCESS_CONFIDENCE
        )
        self.metrics = SearchMetrics()

    # ---------------------- Query planning ----------------------
    def _ordered_terms(self, primary_term, context):
        cached = self.pattern_cache.lookup(context_key(context))
        generated = generate_alternate_terms(primary_term, context, self.policy)
        seen = {normalize_label(primary_term)}
        ordered = []
        for term in [*cached, *context.previous_successful_terms, *generated]:
            key = normalize_label(term)
            if not key or key in seen:
                continue
            seen.add(key)
            ordered.append(" ".join(term.split()))
        return ordered

    def alternate_terms(self, primary_term, context):
        """Terms a fallback pass would issue: proven terms first, then generated ones."""
        return self._ordered_terms(primary_term, context)[: self.max_alternate_terms]

    def suggest_terms(self, primary_term, context):
        return self._ordered_terms(" ".join(str(primary_term or "").split()), context)

    # ---------------------- Provider calls ----------------------
    def _fetch_many(self, terms, filters):
        """
        Run provider queries with bounded parallelism; outcomes come back in ``terms`` order.
        - At most ``max_parallel_requests`` queries are in flight
        - Each query gets its own deadline from the moment it is issued
        - A query past its deadline is abandoned and its slot goes to the next term
        """
        if not terms:
            return []
        timeout = self.request_timeout_seconds
        queued = list(terms)
        in_flight = {}
        outcomes = {}
        # One thread per term: an abandoned query keeps its thread, not its slot.
        pool = ThreadPoolExecutor(max_workers=len(terms), thread_name_prefix="lessonscout-search")
        try:
            while queued or in_flight:
                while queued and len(in_flight) < self.max_parallel_requests:
                    term = queued.pop(0)
                    fut = pool.submit(_run_provider_search, self.provider, term, self.results_per_query, filters)
                    in_flight[fut] = (term, time.monotonic() + timeout if timeout else None)

                deadlines = [deadline for _term, deadline in in_flight.values() if deadline is not None]
                wait_for = max(0.0, min(deadlines) - time.monotonic()) if deadlines else None
                done, _pending = wait(in_flight, timeout=wait_for, return_when=FIRST_COMPLETED)
                for fut in done:
                    term, _deadline = in_flight.pop(fut)
                    outcomes[term] = fut.result()

                now = time.monotonic()
                for fut, (term, deadline) in list(in_flight.items()):
                    if deadline is None or now < deadline:
                        continue
                    del in_flight[fut]
                    fut.cancel()
                    outcomes[term] = ProviderOutcome.failed(
                        term,
                        ProviderTransportError(f"provider request timed out after {timeout:.1f}s"),
                        elapsed_ms=int(timeout * 1000),
                    )
        finally:
            pool.shutdown(wait=False, cancel_futures=True)
        return [outcomes[term] for term in terms]

    # ---------------------- Search ----------------------
    def search(self, primary_term, context: SearchContext) -> SearchResult:
        term = " ".join(str(primary_term or "").split())
        if not term:
            raise ValueError("primary search term is required")
        if not isinstance(context, SearchContext):
            raise TypeError("context must be a SearchContext")

        started = time.monotonic()
        key = context_key(context)
        thresholds = self.threshold_provider(context)
        filters = SearchFilters.for_context(context)
        _log_event(
            logging.INFO,
            "search_started",
            stage="init",
            query=term,
            context_key=list(key),
            subject=context.subject_kind.value,
            grade_band=context.grade_band.value,
            thresholds=thresholds.to_dict(),
        )

        primary = self._fetch_many([term], filters)[0]
        if not primary.ok:
            _log_event(
                logging.ERROR,
                "primary_search_failed",
                stage="primary_search",
                query=term,
                error=str(primary.error),
            )
            raise ProviderUnavailable(term, primary.error) from primary.error

        primary_scored = score_candidates(primary.items, context, term, self.policy)
        primary_accepted = [item for item in primary_scored if item.is_accepted]
        _log_event(
            logging.INFO,
            "primary_search_completed",
            stage="scoring",
            query=term,
            candidates=len(primary.items),
            accepted=len(primary_accepted),
            elapsed_ms=primary.elapsed_ms,
        )

        decision = should_trigger_fallback(primary_accepted, thresholds)
        passes = [(term, primary_scored)]
        terms_used = [term]
        total_examined = len(primary.items)
        fallback_accepted = 0

        if decision.should_fallback:
            alternates = self.alternate_terms(term, context)
            _log_event(
                logging.INFO,
                "fallback_triggered",
                stage="fallback_check",
                query=term,
                reason=decision.reason,
                alternates=alternates,
            )
            for outcome in self._fetch_many(alternates, filters):
                if not outcome.ok:
                    failure = AlternateFetchFailed(outcome.query, outcome.error)
                    _log_event(
                        logging.WARNING,
                        "alternate_search_failed",
                        stage="fallback_search",
                        query=outcome.query,
                        error=str(failure),
                    )
                    continue
                scored = score_candidates(outcome.items, context, outcome.query, self.policy)
                passes.append((outcome.query, scored))
                total_examined += len(outcome.items)
                fallback_accepted += sum(1 for item in scored if item.is_accepted)
                if outcome.items:
                    terms_used.append(outcome.query)

        results = combine_and_rank(passes, self.max_results)
        rejected = disqualified_candidates(passes)
        average = mean_confidence(results)

        learning = learn_from_search(results, self.success_confidence)
        if learning.successful_terms:
            cached = self.pattern_cache.record(key, learning.successful_terms)
            _log_event(
                logging.DEBUG,
                "pattern_cache_updated",
                stage="learn",
                context_key=list(key),
                terms=list(learning.successful_terms),
                cached=len(cached),
            )

        successful = bool(results) and average >= thresholds.min_confidence
        self.metrics.record(
            average_confidence=average,
            successful=successful,
            fallback_triggered=decision.should_fallback,
        )

        result = SearchResult(
            results=tuple(results),
            search_terms_used=tuple(terms_used),
            average_confidence=average,
            total_results_found=total_examined,
            fallback_triggered=decision.should_fallback,
            search_strategy=STRATEGY_FALLBACK_ENHANCED if decision.should_fallback else STRATEGY_PRIMARY_ONLY,
            feedback=SearchFeedback(
                primary_search_results=len(primary_accepted),
                fallback_search_results=fallback_accepted,
                filtered_out_count=len(rejected),
                reasons_filtered=tuple(aggregate_filter_reasons(rejected)),
            ),
            fallback_reason=decision.reason if decision.should_fallback else None,
            thresholds=thresholds,
            improvement_suggestions=learning.improvement_suggestions,
        )
        _log_event(
            logging.INFO,
            "search_completed",
            stage="done",
            query=term,
            results=len(results),
            average_confidence=round(average, 1),
            fallback_triggered=decision.should_fallback,
            search_terms_used=terms_used,
            filtered_out=len(rejected),
            elapsed_ms=int((time.monotonic() - started) * 1000),
        )
        return result

    def search_with_fallback(self, primary_term, context):
        return self.search(primary_term, context)

    def performance_metrics(self):
        return self.metrics.snapshot(cache_size=len(self.pattern_cache))

    def reset(self):
        self.pattern_cache.clear()
        self.metrics.reset()
