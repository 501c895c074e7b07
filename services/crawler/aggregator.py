# services/crawler/aggregator.py
import asyncio
import uuid
from typing import Dict, List, Optional

from loguru import logger
from prometheus_client import Counter

from core.config import Settings, get_settings
from core.thresholds import Thresholds, thresholds_from_settings
from models.aggregation import NO_NEW_DATA, AggregationResult, BrandReport
from models.camera_update import CameraUpdate
from models.outcome import Skip, SkipReason, Stage
from services.dedup.deduplicator import Deduplicator
from services.dedup.identity import assign_identity
from services.extraction.description import DescriptionSynthesizer
from services.extraction.record_extractor import RecordExtractor
from services.validation.quality import QualityGate

from .config_loader import get_brand_config, list_available_brands, load_brands
from .deadline import Deadline
from .page_fetcher import PageFetcher, SleepFunc
from .source_resolver import SourceResolver

# ----------------------------------------------------------------------
#  Metrics
# ----------------------------------------------------------------------
CANDIDATES_EXTRACTED = Counter(
    'camera_candidates_extracted_total', 'Raw candidates pulled from article pages', ['brand']
)
RECORDS_ACCEPTED = Counter(
    'camera_records_accepted_total', 'Candidates that passed the quality gate', ['brand']
)
RECORDS_REJECTED = Counter(
    'camera_records_rejected_total', 'Candidates rejected by the quality gate', ['reason']
)
DUPLICATES_REMOVED = Counter(
    'camera_duplicates_removed_total', 'Records dropped by a dedup pass', ['scope']
)
AGGREGATION_RUNS = Counter(
    'camera_aggregation_runs_total', 'Aggregation runs by outcome', ['outcome']
)


# ----------------------------------------------------------------------
#  CameraUpdateAggregator – brand pipelines + global merge
# ----------------------------------------------------------------------
class CameraUpdateAggregator:
    """
    Runs one pipeline per brand concurrently (resolve → fetch → extract →
    validate → local dedup), merges their output, deduplicates it again
    across brands and sorts it newest first.

    ``run`` never raises: an empty merge or an unexpected error both come
    back as ``NO_NEW_DATA`` so callers keep whatever they stored last time.
    """

    def __init__(
        self,
        fetcher: Optional[PageFetcher] = None,
        *,
        settings: Optional[Settings] = None,
        thresholds: Optional[Thresholds] = None,
        sources: Optional[Dict[str, List[str]]] = None,
        resolver: Optional[SourceResolver] = None,
        extractor: Optional[RecordExtractor] = None,
        sleep: SleepFunc = asyncio.sleep,
    ):
        self.settings = settings or get_settings()
        self.thresholds = thresholds or thresholds_from_settings(self.settings)
        self._owns_fetcher = fetcher is None
        self.fetcher = fetcher or PageFetcher(settings=self.settings, sleep=sleep)
        self.resolver = resolver or SourceResolver(self.fetcher, settings=self.settings, sleep=sleep)
        self.extractor = extractor or RecordExtractor(DescriptionSynthesizer(self.thresholds))
        self.gate = QualityGate(self.thresholds)
        self.deduplicator = Deduplicator(self.thresholds)
        self._sources = sources
        self._sleep = sleep

    async def __aenter__(self) -> "CameraUpdateAggregator":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def close(self) -> None:
        if self._owns_fetcher:
            await self.fetcher.close()

    # ------------------------------------------------------------------
    def _select_sources(self, brands: Optional[List[str]]) -> Dict[str, List[str]]:
        """Brand → listing pages, in configured order, optionally narrowed to ``brands``."""
        if self._sources is not None:
            sources = dict(self._sources)
            if not brands:
                return sources
            wanted = {b.lower() for b in brands}
            return {name: pages for name, pages in sources.items() if name.lower() in wanted}

        path = self.settings.SOURCES_PATH
        if not brands:
            return {name: cfg.listing_pages for name, cfg in load_brands(path).brands.items()}
        for brand in brands:
            get_brand_config(brand, path)       # raises BrandNotFoundError
        wanted = {b.lower() for b in brands}
        return {
            name: get_brand_config(name, path).listing_pages
            for name in list_available_brands(path)
            if name.lower() in wanted
        }

    # ------------------------------------------------------------------
    def _process_page(self, html: str, brand: str, url: str, report: BrandReport) -> List[CameraUpdate]:
        """Extract, gate and identify every candidate on one page."""
        try:
            extracted = self.extractor.extract(html, brand, url)
        except Exception as exc:
            logger.error(f"{brand}: extraction failed for {url}: {exc}")
            report.skips.append(
                Skip(stage=Stage.EXTRACT, reason=SkipReason.EXTRACTION_ERROR, subject=url, detail=str(exc))
            )
            return []

        if not extracted.ok:
            report.skips.append(extracted.skip)
            return []

        report.candidates += len(extracted.value)
        CANDIDATES_EXTRACTED.labels(brand=brand).inc(len(extracted.value))

        accepted: List[CameraUpdate] = []
        for candidate in extracted.value:
            verdict = self.gate.evaluate(candidate)
            if not verdict.ok:
                RECORDS_REJECTED.labels(reason=verdict.skip.reason.value).inc()
                report.skips.append(verdict.skip)
                continue
            accepted.append(assign_identity(verdict.value))
        RECORDS_ACCEPTED.labels(brand=brand).inc(len(accepted))
        return accepted

    async def _run_brand(self, brand: str, listing_pages: List[str], deadline: Deadline) -> BrandReport:
        report = BrandReport(brand=brand)
        urls, skips = await self.resolver.resolve(brand, listing_pages, deadline)
        report.urls_resolved = len(urls)
        report.skips.extend(skips)

        urls = urls[: self.settings.MAX_ARTICLES_PER_BRAND]
        accepted: List[CameraUpdate] = []
        for index, url in enumerate(urls):
            if deadline.expired:
                logger.warning(f"{brand}: deadline reached, skipping {len(urls) - index} URL(s)")
                report.skips.extend(
                    Skip(stage=Stage.FETCH, reason=SkipReason.DEADLINE, subject=u) for u in urls[index:]
                )
                break
            if index:
                await self._sleep(self.settings.REQUEST_DELAY)

            logger.debug(f"{brand}: analysing {url}")
            fetched = await self.fetcher.try_fetch(url, deadline)
            if not fetched.ok:
                report.skips.append(fetched.skip)
                continue
            report.urls_fetched += 1
            accepted.extend(self._process_page(fetched.value, brand, url, report))

        local = self.deduplicator.deduplicate(accepted, scope=brand)
        DUPLICATES_REMOVED.labels(scope="local").inc(len(local.dropped))
        report.updates = local.unique
        report.skips.extend(local.dropped)
        logger.info(
            f"{brand}: {len(report.updates)} update(s) from {report.urls_fetched}/{report.urls_resolved} "
            f"article(s) ({len(local.dropped)} duplicate(s) removed)"
        )
        return report

    async def _run_brand_isolated(self, brand: str, listing_pages: List[str], deadline: Deadline) -> BrandReport:
        """A failing brand contributes an empty report instead of sinking the run."""
        try:
            return await self._run_brand(brand, listing_pages, deadline)
        except Exception as exc:
            logger.error(f"{brand}: pipeline failed: {exc}")
            return BrandReport(
                brand=brand,
                error=str(exc),
                skips=[Skip(stage=Stage.BRAND, reason=SkipReason.BRAND_FAILED, subject=brand, detail=str(exc))],
            )

    # ------------------------------------------------------------------
    async def run(
        self,
        deadline: Optional[Deadline] = None,
        brands: Optional[List[str]] = None,
        run_id: Optional[uuid.UUID] = None,
    ) -> AggregationResult:
        """
        Aggregate updates for every configured brand (or just ``brands``).

        ``deadline`` defaults to ``settings.DEADLINE_SECONDS`` (no limit when
        unset); URLs still pending when it passes are recorded as skips.
        """
        run_id = run_id or uuid.uuid4()
        try:
            sources = self._select_sources(brands)
            deadline = deadline or Deadline(self.settings.DEADLINE_SECONDS)
            logger.info(f"Starting aggregation run {run_id} for {', '.join(sources) or 'no brands'}")

            reports = await asyncio.gather(
                *(self._run_brand_isolated(b, pages, deadline) for b, pages in sources.items())
            )

            merged = [update for report in reports for update in report.updates]
            global_pass = self.deduplicator.deduplicate(merged, scope="global")
            DUPLICATES_REMOVED.labels(scope="global").inc(len(global_pass.dropped))

            # sorted() is stable, so equal dates keep merge order
            ordered = sorted(global_pass.unique, key=lambda u: u.date, reverse=True)
            skips = [s for report in reports for s in report.skips] + global_pass.dropped

            if not ordered:
                logger.warning(f"Run {run_id}: no new data available, keeping existing data")
                AGGREGATION_RUNS.labels(outcome="no_new_data").inc()
                return AggregationResult(
                    updates=NO_NEW_DATA, run_id=run_id, brand_reports=list(reports), skips=skips
                )

            logger.info(f"Run {run_id}: {len(ordered)} update(s) after global dedup")
            AGGREGATION_RUNS.labels(outcome="completed").inc()
            return AggregationResult(
                updates=ordered, run_id=run_id, brand_reports=list(reports), skips=skips
            )

        except Exception as exc:
            logger.exception(f"Aggregation run {run_id} failed: {exc}")
            AGGREGATION_RUNS.labels(outcome="failed").inc()
            return AggregationResult(
                updates=NO_NEW_DATA,
                run_id=run_id,
                error=str(exc),
                skips=[Skip(stage=Stage.AGGREGATE, reason=SkipReason.UNEXPECTED, subject=str(run_id),
                            detail=str(exc))],
            )
