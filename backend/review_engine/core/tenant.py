"""Shop (tenant) resolution for public storefront requests.

Requests arriving through the platform's app proxy carry the shop either as
an explicit header, as the ``shop`` query parameter, or implicitly in the
forwarded host. Resolution order, first match wins:

1. ``x-shopify-shop-domain`` header
2. ``shop`` query parameter
3. ``x-forwarded-host`` / ``host`` / URL host, only when it ends with the
   storefront domain suffix (``.myshopify.com`` by default)

Nothing else is ever used to guess a tenant.
"""

from fastapi import Request

from review_engine.config import settings
from review_engine.core.exceptions import MissingShopError

SHOP_HEADER = "x-shopify-shop-domain"
SHOP_QUERY_PARAM = "shop"


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip().lower()
    return value or None


def is_storefront_host(host: str | None, suffix: str | None = None) -> bool:
    """Check whether a host belongs to the platform's storefront domain."""
    suffix = (suffix if suffix is not None else settings.storefront_domain_suffix).lower()
    host = _clean(host)
    if not host or not suffix:
        return False
    # Drop an explicit port before comparing
    hostname = host.rsplit(":", 1)[0] if ":" in host else host
    return hostname.endswith(suffix) and len(hostname) > len(suffix)


def resolve_shop(request: Request) -> str | None:
    """Resolve the shop domain for a request, or None if it cannot be attributed."""
    shop = _clean(request.headers.get(SHOP_HEADER))
    if shop:
        return shop

    shop = _clean(request.query_params.get(SHOP_QUERY_PARAM))
    if shop:
        return shop

    host = (
        request.headers.get("x-forwarded-host")
        or request.headers.get("host")
        or request.url.netloc
    )
    # A proxy chain may list several hosts; the first is the original one
    host = _clean(host.split(",")[0]) if host else None
    if is_storefront_host(host):
        return host.rsplit(":", 1)[0] if ":" in host else host

    return None


def require_shop(request: Request) -> str:
    """FastAPI dependency: the resolved shop, or 401 when none matches."""
    shop = resolve_shop(request)
    if shop is None:
        verb = "post to" if request.method == "POST" else "call via"
        raise MissingShopError(verb)
    return shop
