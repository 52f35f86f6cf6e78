"""Feed scrape job.

Runs one full cycle from the command line:
1. Establish a session (saved cookies, or a fresh login with --login)
2. Scrape the group feed, storing new posts
3. Release the browser and print a JSON summary

Usage:
    python -m harvester.jobs.scrape_feed_job --group 123456 --max-posts 30
"""

import asyncio
import json
import logging
import os
from datetime import datetime
from typing import Optional

from harvester.models.content import ScrapeRequest
from harvester.models.session import SessionStatus
from harvester.service import HarvesterService

logging.basicConfig(
    level=os.environ.get("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


async def run_scrape_job(
    request: ScrapeRequest,
    login: bool = False,
    service: Optional[HarvesterService] = None,
) -> dict:
    """Run a scrape job and return its summary."""
    service = service or HarvesterService()
    started_at = datetime.now()
    summary: dict = {"group_id": request.group_id}

    try:
        if login:
            outcome = await service.establish_session()
            summary["login"] = outcome.model_dump(mode="json")
            if outcome.status is not SessionStatus.AUTHENTICATED:
                summary["success"] = False
                summary["message"] = outcome.message
                return summary

        result = await service.scrape_feed(request)
        summary.update(
            success=result.success,
            message=result.message,
            feed_name=result.feed_name,
            member_count=result.member_count,
            posts=len(result.posts),
            saved=result.saved_count,
            skipped=result.skipped_count,
        )
        return summary
    finally:
        await service.release_session()
        summary["duration_seconds"] = round((datetime.now() - started_at).total_seconds(), 1)


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Scrape a group feed")
    parser.add_argument("--group", required=True, help="Group id")
    parser.add_argument("--max-posts", type=int, default=50, help="Max posts to extract")
    parser.add_argument("--no-comments", action="store_true", help="Skip comments")
    parser.add_argument("--max-comments", type=int, default=20, help="Max comments per post")
    parser.add_argument("--login", action="store_true", help="Log in with configured credentials first")

    args = parser.parse_args()

    scrape_request = ScrapeRequest(
        group_id=args.group,
        max_posts=args.max_posts,
        include_comments=not args.no_comments,
        max_comments_per_post=args.max_comments,
    )

    job_summary = asyncio.run(run_scrape_job(scrape_request, login=args.login))
    print(json.dumps(job_summary, indent=2, ensure_ascii=False))
