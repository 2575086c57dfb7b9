"""Error taxonomy for Track Fetcher automation."""

from enum import Enum


class ErrorCategory(Enum):
    """Categorizes TrackFetcherError for actionable user messages."""
    NAVIGATION_TIMEOUT = "navigation_timeout"
    WIDGET_NOT_FOUND = "widget_not_found"
    SELECTOR_MISSING = "selector_missing"
    NOT_PURCHASED = "not_purchased"
    CATALOG_UNAVAILABLE = "catalog_unavailable"
    LOGIN_FAILED = "login_failed"
    BROWSER_ERROR = "browser_error"


# Map error categories to user-friendly action messages
ERROR_MESSAGES = {
    ErrorCategory.NAVIGATION_TIMEOUT: (
        "The page took too long to load. "
        "Check your internet connection and try again."
    ),
    ErrorCategory.WIDGET_NOT_FOUND: (
        "The mixer did not appear on the song page. "
        "The site may have changed; see the saved diagnostics."
    ),
    ErrorCategory.SELECTOR_MISSING: (
        "A required control is missing from the page. "
        "The site may have been updated; see the saved diagnostics."
    ),
    ErrorCategory.NOT_PURCHASED: (
        "This song has not been purchased (no Download button)."
    ),
    ErrorCategory.CATALOG_UNAVAILABLE: (
        "Could not load your list of purchased songs. "
        "Try refreshing the list."
    ),
    ErrorCategory.LOGIN_FAILED: (
        "Login failed. Check your email and password."
    ),
    ErrorCategory.BROWSER_ERROR: (
        "The browser reported an error while working on this page "
        "(an element went away or the page was reloaded). Try again."
    ),
}


class TrackFetcherError(Exception):
    """Base class for failures that abort the current operation."""

    category: ErrorCategory | None = None

    def __init__(self, message: str, category: ErrorCategory | None = None):
        super().__init__(message)
        if category is not None:
            self.category = category

    @property
    def user_message(self) -> str:
        """Return an actionable message for the user."""
        if self.category and self.category in ERROR_MESSAGES:
            return ERROR_MESSAGES[self.category]
        return str(self)


class NavigationTimeout(TrackFetcherError):
    """A page navigation did not finish in time."""
    category = ErrorCategory.NAVIGATION_TIMEOUT


class MixerNotFound(TrackFetcherError):
    """The mixer widget root never appeared in the page or any frame."""
    category = ErrorCategory.WIDGET_NOT_FOUND


class SelectorMissing(TrackFetcherError):
    """A required control could not be located."""
    category = ErrorCategory.SELECTOR_MISSING

    def __init__(self, message: str, selector: str = "",
                 category: ErrorCategory | None = None):
        super().__init__(message, category)
        self.selector = selector


class NotPurchased(SelectorMissing):
    """The mix page offers "add to cart" instead of a download."""
    category = ErrorCategory.NOT_PURCHASED


class CatalogUnavailable(TrackFetcherError):
    """The purchased-songs listing could not be loaded."""
    category = ErrorCategory.CATALOG_UNAVAILABLE


class LoginFailed(TrackFetcherError):
    category = ErrorCategory.LOGIN_FAILED


class BrowserError(TrackFetcherError):
    """A Playwright call failed (detached element, closed frame, ...)."""
    category = ErrorCategory.BROWSER_ERROR
