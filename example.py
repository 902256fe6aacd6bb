"""Example usage of the DropURL audit engine - audit two pages and crawl a site."""

import asyncio
import json

from dropurl import AuditConfig, crawl_and_check, run_checks
from dropurl.logging_config import setup_logging


async def run():
    """Run example audits."""
    config = AuditConfig.from_env()

    urls = ["https://example.com", "https://example.com/about"]
    print(f"Auditing {', '.join(urls)}...")

    result = await run_checks(urls, {"all": True}, config=config)

    reach = result["check404"]
    if not reach.get("error"):
        for item in reach["results"]:
            verdict = "problem" if item["is_problematic"] else "ok"
            print(f"  {item['url']}: {item['main_status']} ({verdict})")

    summary = result["duplicate"].get("summary", {})
    print(f"\nDuplicate groups: {len(summary.get('cross_page_duplicates', []))}")

    print("\nCrawling https://example.com (depth 1)...")
    crawl = await crawl_and_check("https://example.com", max_depth=1, config=config)
    print(json.dumps(crawl, indent=2))


def main():
    setup_logging(level="INFO")
    asyncio.run(run())


if __name__ == "__main__":
    main()
