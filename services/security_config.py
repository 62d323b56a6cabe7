# security_config.py
from enum import Enum


class PageClass(Enum):
    API = "api"
    STATIC = "static"
    PUBLIC = "public"
    PROTECTED = "protected"
    ROOT = "root"
    UNLISTED = "unlisted"


class PageSecurityConfig:
    """Page classification tables for browser navigations"""

    API_PREFIX = "/api/"
    LOGIN_PAGE = "/login.html"
    LANDING_PAGE = "/home.html"

    STATIC_EXTENSIONS = frozenset({
        ".css", ".js", ".png", ".jpg", ".jpeg", ".gif", ".ico", ".svg",
        ".woff", ".woff2", ".ttf", ".eot",
    })

    PUBLIC_PAGES = frozenset({
        "/login.html",
        "/register.html",
        "/admin.html",
    })

    PROTECTED_PAGES = frozenset({
        "/home.html",
        "/account.html",
        "/orders.html",
        "/recharge.html",
        "/withdraw.html",
        "/service.html",
        "/invite.html",
        "/start.html",
        "/order.html",
    })


def classify(path):
    """Map a request path to its PageClass; API, static, public, protected, root in that order."""
    path = (path or "").lower()
    if path.startswith(PageSecurityConfig.API_PREFIX):
        return PageClass.API
    dot = path.rfind(".")
    if dot != -1 and path[dot:] in PageSecurityConfig.STATIC_EXTENSIONS:
        return PageClass.STATIC
    if path in PageSecurityConfig.PUBLIC_PAGES:
        return PageClass.PUBLIC
    if path in PageSecurityConfig.PROTECTED_PAGES:
        return PageClass.PROTECTED
    if path in ("", "/"):
        return PageClass.ROOT
    return PageClass.UNLISTED
