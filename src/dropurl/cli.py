"""Command-line interface for the DropURL audit engine."""

import asyncio
import json
import sys
from typing import Optional

from dropurl.config import AuditConfig, AuditThresholds, settings
from dropurl.exceptions import InputError
from dropurl.logging_config import setup_logging
from dropurl.models import CrawlNode
from dropurl.site_crawler import build_crawl_tree, render_crawl_tree

CHECK_FLAGS = ("check404", "duplicate", "seo")


def _selected_checks(args, default_all: bool) -> dict:
    """Build a checks mapping from CLI flags."""
    checks = {name: getattr(args, name, False) for name in CHECK_FLAGS}
    checks["all"] = args.all or (default_all and not any(checks.values()))
    return checks


def _load_thresholds(args) -> AuditThresholds:
    """Thresholds from --thresholds FILE, or the environment when absent."""
    if not args.thresholds:
        return AuditThresholds.from_env()
    try:
        return AuditThresholds.from_file(args.thresholds)
    except (OSError, ValueError) as e:
        raise InputError(f"Cannot load thresholds from {args.thresholds}: {e}", args.thresholds)


def _write_output(text: str, output_file: Optional[str]):
    if output_file:
        with open(output_file, "w") as f:
            f.write(text)
        print(f"Results written to {output_file}")
    else:
        print(text)


def format_check_results(result: dict) -> str:
    """Render run_checks output as plain text.

    Args:
        result: Output of run_checks

    Returns:
        Human-readable summary, one section per check
    """
    lines = []

    reach = result.get("check404")
    if reach is not None:
        lines.append("404 / Reachability")
        if reach.get("error"):
            lines.append(f"  failed: {reach.get('raw_error')}")
        else:
            for item in reach["results"]:
                status = item["main_status"] if item["main_status"] is not None else "unreachable"
                verdict = "PROBLEM" if item["is_problematic"] else "OK"
                lines.append(f"  [{verdict}] {item['url']} (status {status})")
                if item["frame_failures"]:
                    lines.append(f"    iframe 404s: {len(item['frame_failures'])}")
                if item["asset_failures"]:
                    lines.append(f"    asset 404s: {len(item['asset_failures'])}")

    dup = result.get("duplicate")
    if dup is not None:
        lines.append("Duplicate content")
        if dup.get("error"):
            lines.append(f"  failed: {dup.get('raw_error')}")
        else:
            summary = dup.get("summary", {})
            groups = summary.get("cross_page_duplicates", [])
            if not groups:
                lines.append("  no duplicate content found")
            for group in groups:
                lines.append(f"  {group['hash'][:12]}: {', '.join(group['urls'])}")

    seo = result.get("seo")
    if seo is not None:
        lines.append("SEO")
        if seo.get("error"):
            lines.append(f"  failed: {seo.get('raw_error')}")
        else:
            for item in seo["results"]:
                lines.append(f"  {item['root_url']}")
                snapshot = item.get("snapshot")
                if not item["reachable"]:
                    lines.append("    not reachable")
                    continue
                if snapshot is None:
                    lines.append(f"    analysis failed: {item.get('error')}")
                    continue
                h = snapshot["heuristics"]
                lines.append(f"    title: {h['title_length']} chars ({'ok' if h['title_length_ok'] else 'needs work'})")
                lines.append(
                    f"    description: {h['description_length']} chars "
                    f"({'ok' if h['description_length_ok'] else 'needs work'})"
                )
                lines.append(f"    canonical: {h['has_canonical']}, html lang: {h['has_html_lang']}")
                lines.append(f"    h1: {snapshot['headings']['h1_count']}")
                coverage = h["image_alt_coverage"]
                lines.append(f"    image alt coverage: {'n/a' if coverage is None else f'{coverage:.0%}'}")
                lines.append(
                    f"    open graph: {h['has_open_graph']}, twitter card: {h['has_twitter_card']}, "
                    f"schema: {h['has_schema']}"
                )

    return "\n".join(lines)


def check_command(args) -> int:
    """Audit one or more URLs."""
    from dropurl.api import run_checks

    result = asyncio.run(run_checks(
        list(args.urls),
        checks=_selected_checks(args, default_all=True),
        category=args.category,
        config=AuditConfig.from_env(),
        thresholds=_load_thresholds(args),
    ))

    if args.output == "json":
        _write_output(json.dumps(result, indent=2), args.output_file)
    else:
        _write_output(format_check_results(result), args.output_file)
    return 0


def crawl_command(args) -> int:
    """Crawl a site and optionally audit the pages reached."""
    from dropurl.api import crawl_and_check

    result = asyncio.run(crawl_and_check(
        args.start_url,
        max_depth=args.max_depth,
        same_domain_only=not args.all_domains,
        checks=_selected_checks(args, default_all=False),
        config=AuditConfig.from_env(),
        thresholds=_load_thresholds(args),
    ))

    if args.output == "json":
        _write_output(json.dumps(result, indent=2), args.output_file)
    else:
        nodes = [
            CrawlNode(
                url=item["url"],
                status=item["status"],
                depth=item["depth"],
                parent_url=item["parent_url"],
                error=item["error"],
            )
            for item in result["results"]
        ]
        text = render_crawl_tree(build_crawl_tree(nodes))
        text += f"\n\nTotal visited: {result['total_visited']}"
        _write_output(text, args.output_file)
    return 0


def _add_check_flags(parser):
    parser.add_argument("--check404", action="store_true", help="Check main document and iframe 404s")
    parser.add_argument("--duplicate", action="store_true", help="Detect duplicate content")
    parser.add_argument("--seo", action="store_true", help="Analyze on-page SEO")
    parser.add_argument("--all", action="store_true", help="Run every check")
    parser.add_argument(
        "--thresholds",
        metavar="FILE",
        help="JSON file with SEO heuristic thresholds (title_min, title_max, ...)",
    )


def _add_output_flags(parser):
    parser.add_argument(
        "--output",
        "-o",
        choices=["text", "json"],
        default="text",
        help="Output format (default: text)",
    )
    parser.add_argument(
        "--output-file",
        "-f",
        help="Write output to file instead of stdout",
    )


def main(argv=None):
    """Main CLI entry point."""
    import argparse

    parser = argparse.ArgumentParser(
        description="DropURL - Audit web pages for broken frames, duplicate content and SEO"
    )

    # Global flags (before subcommands)
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=settings.LOG_LEVEL.upper() if settings.LOG_LEVEL else "INFO",
        help="Set logging verbosity (default: INFO)",
    )
    parser.add_argument(
        "--log-file",
        help="Write logs to file in addition to console",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    check_parser = subparsers.add_parser(
        "check", help="Audit one or more URLs (all checks when no check flag is given)."
    )
    check_parser.add_argument("urls", nargs="+", help="URLs to audit (one or more)")
    check_parser.add_argument("--category", help="Label for the reachability report")
    _add_check_flags(check_parser)
    _add_output_flags(check_parser)
    check_parser.set_defaults(func=check_command)

    crawl_parser = subparsers.add_parser(
        "crawl", help="Crawl a site breadth-first and optionally audit visited pages."
    )
    crawl_parser.add_argument("start_url", help="URL to start crawling from")
    crawl_parser.add_argument(
        "--max-depth",
        type=int,
        default=1,
        help="Maximum crawl depth; the start page is depth 0 (default: 1)",
    )
    crawl_parser.add_argument(
        "--all-domains",
        action="store_true",
        help="Follow links to other domains",
    )
    _add_check_flags(crawl_parser)
    _add_output_flags(crawl_parser)
    crawl_parser.set_defaults(func=crawl_command)

    args = parser.parse_args(argv)

    # Configure logging based on flags
    setup_logging(
        level=args.log_level,
        log_file=getattr(args, 'log_file', None),
    )

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    try:
        return args.func(args)
    except InputError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
