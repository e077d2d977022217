# ebay_watch/workflow.py
from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import Optional

from ebay_watch.config import Settings, settings as default_settings
from ebay_watch.marketplace import EbayClient
from ebay_watch.schemas import Listing, SearchCriteria
from ebay_watch.services.notifier import Notifier
from ebay_watch.storage import CriteriaStore

logger = logging.getLogger(__name__)


class Phase(str, enum.Enum):
    IDLE = "idle"
    LOADING = "loading"
    QUERYING = "querying"
    NOTIFYING = "notifying"
    SKIPPING = "skipping"
    ERROR_REPORTING = "error_reporting"


@dataclass
class RunReport:
    phases: list[Phase] = field(default_factory=list)
    criteria: Optional[SearchCriteria] = None
    listings: list[Listing] = field(default_factory=list)
    error: Optional[BaseException] = None
    skipped: bool = False

    @property
    def reached(self) -> Optional[Phase]:
        """Last phase before returning to idle."""
        active = [p for p in self.phases if p is not Phase.IDLE]
        return active[-1] if active else None

    @property
    def ok(self) -> bool:
        return self.error is None


class ScheduledWorkflow:
    """Load criteria, query eBay, mail the matches, report failures."""

    def __init__(
        self,
        store: Optional[CriteriaStore] = None,
        client: Optional[EbayClient] = None,
        notifier: Optional[Notifier] = None,
        cfg: Optional[Settings] = None,
    ):
        self.cfg = cfg or default_settings
        self.store = store or CriteriaStore(cfg=self.cfg)
        self.client = client or EbayClient(self.cfg)
        self.notifier = notifier or Notifier(self.cfg)
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    async def run(self) -> RunReport:
        if self._running:
            logger.warning("Previous check still in flight, skipping this tick")
            return RunReport(phases=[Phase.IDLE], skipped=True)
        self._running = True
        try:
            return await self._run()
        finally:
            self._running = False

    async def run_once(self) -> RunReport:
        """One-shot variant: the captured failure is re-raised for the caller."""
        report = await self.run()
        if report.error is not None:
            raise report.error
        return report

    async def _run(self) -> RunReport:
        report = RunReport()
        logger.info("Running eBay listing check")

        report.phases.append(Phase.LOADING)
        try:
            criteria = self.store.load()
        except Exception as e:
            return await self._report_error(report, e)
        if criteria is None or not criteria.email:
            logger.info("No search criteria or email found")
            report.phases.append(Phase.IDLE)
            return report
        report.criteria = criteria
        logger.info("Checking listings for %s (%s)", criteria.email, _describe(criteria))

        report.phases.append(Phase.QUERYING)
        try:
            listings = await self.client.search_ending_soon(criteria)
        except Exception as e:
            return await self._report_error(report, e)
        report.listings = listings

        if not listings:
            report.phases.append(Phase.SKIPPING)
            logger.info("No listings found ending within the next hour")
            report.phases.append(Phase.IDLE)
            return report

        report.phases.append(Phase.NOTIFYING)
        logger.info("Found %d listing(s) ending soon", len(listings))
        try:
            await self.notifier.send_results(criteria.email, listings, criteria)
        except Exception as e:
            return await self._report_error(report, e)
        for i, l in enumerate(listings, 1):
            logger.info("  %d. %s - $%s (%s bids)", i, l.title, l.price, l.bids)

        report.phases.append(Phase.IDLE)
        return report

    async def _report_error(self, report: RunReport, error: Exception) -> RunReport:
        report.phases.append(Phase.ERROR_REPORTING)
        report.error = error
        logger.error("Error in scheduled check", exc_info=error)
        if self.cfg.ADMIN_EMAIL:
            await self.notifier.send_error_alert(self.cfg.ADMIN_EMAIL, error)
        report.phases.append(Phase.IDLE)
        return report


def _describe(criteria: SearchCriteria) -> str:
    return (
        f"keyword={criteria.keyword!r} category={criteria.category!r} "
        f"condition={criteria.condition!r} "
        f"price={criteria.min_price or 0}-{criteria.max_price or 'inf'} "
        f"minBids={criteria.min_bids!r}"
    )
