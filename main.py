# main.py — APScheduler + FastAPI on one event loop, or a single check with --once
import argparse
import asyncio
import logging
import sys

import uvicorn
from ebay_watch.config import settings
from ebay_watch.jobs.scheduler import start_scheduler
from ebay_watch.web.server import create_app as create_web_app
from ebay_watch.workflow import ScheduledWorkflow

logger = logging.getLogger(__name__)


async def run_forever(web: bool = True):
    workflow = ScheduledWorkflow()

    # 1) Scheduler (hourly check)
    scheduler = await start_scheduler(workflow)

    try:
        if web:
            # 2) FastAPI via Uvicorn, blocks until Ctrl+C / shutdown
            server = uvicorn.Server(
                uvicorn.Config(
                    create_web_app(workflow.store, workflow.client),
                    host=settings.WEB_HOST,
                    port=settings.PORT,
                    log_level=settings.LOG_LEVEL.lower(),
                )
            )
            await server.serve()
        else:
            await asyncio.Event().wait()
    finally:
        scheduler.shutdown(wait=False)


async def run_once() -> int:
    logger.info("Running manual check...")
    try:
        await ScheduledWorkflow().run_once()
    except Exception:
        logger.exception("Manual run failed")
        return 1
    logger.info("Manual run completed")
    return 0


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Email alerts for eBay auctions ending within the hour.")
    parser.add_argument("--once", action="store_true", help="run a single check and exit")
    parser.add_argument("--no-web", action="store_true", help="run the schedule without the HTTP API")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    logging.basicConfig(level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))

    if args.once:
        return asyncio.run(run_once())

    try:
        asyncio.run(run_forever(web=not args.no_web))
    except (KeyboardInterrupt, SystemExit):
        pass
    logger.info("Shutting down eBay Monitor...")
    return 0


if __name__ == "__main__":
    sys.exit(main())
