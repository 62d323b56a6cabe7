# security_middleware.py
import logging

from flask import redirect, request

from services.security_config import PageClass, PageSecurityConfig, classify

logger = logging.getLogger(__name__)


class PageAccessGate:
    """Redirects browser navigations to protected pages when no valid userToken cookie is present"""

    def __init__(self, tokens=None, app=None):
        self.tokens = tokens
        self.default_protected = False
        self.cookie_name = "userToken"
        if app is not None:
            self.init_app(app)

    def init_app(self, app, tokens=None):
        if tokens is not None:
            self.tokens = tokens
        self.default_protected = app.config.get("PAGE_DEFAULT_PROTECTED", False)
        self.cookie_name = app.config.get("TOKEN_COOKIE_NAME", "userToken")
        app.before_request(self.check_page_access)

    def is_authenticated(self):
        token = request.cookies.get(self.cookie_name)
        return bool(token) and self.tokens.validate(token) is not None

    def check_page_access(self):
        page = classify(request.path)

        if page in (PageClass.API, PageClass.STATIC, PageClass.PUBLIC):
            return None

        if page is PageClass.ROOT:
            if self.is_authenticated():
                return redirect(PageSecurityConfig.LANDING_PAGE)
            return redirect(PageSecurityConfig.LOGIN_PAGE)

        unlisted_page = page is PageClass.UNLISTED and request.path.lower().endswith(".html")
        if page is PageClass.PROTECTED or (unlisted_page and self.default_protected):
            if not self.is_authenticated():
                logger.info(f"Unauthenticated request for {request.path}, redirecting to login")
                return redirect(PageSecurityConfig.LOGIN_PAGE)

        return None


# Initialize middleware
page_access_gate = PageAccessGate()
