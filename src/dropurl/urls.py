"""URL helpers shared by the analyzers and the crawler."""

from typing import Iterable, Optional, Set
from urllib.parse import parse_qsl, urlencode, urljoin, urlparse, urlunparse

from dropurl.constants import CACHE_BUSTING_PARAMS, DEFAULT_PORTS, NON_NAVIGABLE_PREFIXES


def ensure_scheme(raw: str) -> str:
    """Prefix ``https://`` when the input has no http(s) scheme."""
    raw = raw.strip()
    if raw.startswith(("http://", "https://")):
        return raw
    return f"https://{raw}"


def normalize_target(raw) -> Optional[str]:
    """Validate and normalize a user-supplied target URL.

    Args:
        raw: Anything the caller handed in as a URL

    Returns:
        The absolute URL with a scheme, or None if it is not a usable URL
    """
    if not isinstance(raw, str) or not raw.strip():
        return None

    candidate = ensure_scheme(raw)
    try:
        parsed = urlparse(candidate)
        # Accessing .port validates it
        parsed.port
    except ValueError:
        return None

    if not parsed.hostname or " " in parsed.netloc:
        return None

    path = parsed.path or "/"
    return urlunparse((parsed.scheme.lower(), parsed.netloc.lower(), path,
                       parsed.params, parsed.query, parsed.fragment))


def get_hostname(raw: str) -> Optional[str]:
    """Lower-cased hostname of a URL, tolerating a missing scheme."""
    if not raw or not str(raw).strip():
        return None
    try:
        host = urlparse(ensure_scheme(str(raw))).hostname
    except ValueError:
        return None
    return host.lower() if host else None


def primary_hosts(urls: Iterable[str]) -> Set[str]:
    """Hosts present in an input batch."""
    hosts = set()
    for url in urls:
        host = get_hostname(url)
        if host:
            hosts.add(host)
    return hosts


def root_url(raw: str) -> str:
    """Scheme and hostname only, e.g. ``https://example.com/``."""
    try:
        parsed = urlparse(raw)
    except ValueError:
        return raw
    if not parsed.scheme or not parsed.hostname:
        return raw
    return f"{parsed.scheme}://{parsed.hostname}/"


def origin(raw: str) -> str:
    """Scheme and netloc of a URL, e.g. ``https://example.com:8443``."""
    parsed = urlparse(raw)
    return f"{parsed.scheme}://{parsed.netloc}".lower()


def strip_query_and_fragment(raw: str, base: Optional[str] = None) -> Optional[str]:
    """Resolve ``raw`` against ``base`` and drop query string and fragment.

    Scheme and host are lower-cased and a default port is dropped, so
    ``https://A.COM:443/x`` and ``https://a.com/x`` compare equal.

    Returns:
        The normalized absolute URL, or None if it cannot be parsed
    """
    try:
        absolute = urljoin(base, raw) if base else raw
        parsed = urlparse(absolute)
        port = parsed.port
    except ValueError:
        return None
    if not parsed.scheme or not parsed.hostname:
        return None

    scheme = parsed.scheme.lower()
    host = parsed.hostname
    if ":" in host:
        host = f"[{host}]"
    if port is not None and DEFAULT_PORTS.get(scheme) != port:
        host = f"{host}:{port}"
    if parsed.username is not None:
        userinfo = parsed.netloc.rsplit("@", 1)[0]
        host = f"{userinfo}@{host}"
    return urlunparse((scheme, host, parsed.path or "/", "", "", ""))


def strip_cache_busting(raw: str) -> str:
    """Remove per-request cache-busting parameters from a URL's query."""
    parsed = urlparse(raw)
    if not parsed.query:
        return raw
    kept = [
        (key, value)
        for key, value in parse_qsl(parsed.query, keep_blank_values=True)
        if key not in CACHE_BUSTING_PARAMS
    ]
    return urlunparse(parsed._replace(query=urlencode(kept)))


def is_navigable_href(href: str) -> bool:
    """False for mailto:, tel:, javascript: and fragment-only links."""
    if not href:
        return False
    return not href.strip().lower().startswith(NON_NAVIGABLE_PREFIXES)


def is_same_domain(url: str, start_host: str) -> bool:
    """True when ``url`` is on ``start_host`` or one of its subdomains."""
    host = get_hostname(url)
    if not host:
        return False
    start_host = start_host.lower()
    return host == start_host or host.endswith("." + start_host)
