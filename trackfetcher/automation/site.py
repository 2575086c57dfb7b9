"""karaoke-version.com page flows used around the mixer.

Login, the cookie banner, the intro-click toggle, the mix-level download
button and its confirmation modal.  Selectors with several known variants
go through the session's selector registry.
"""

import logging

from playwright.sync_api import Error as PlaywrightError

from automation.errors import LoginFailed, NotPurchased, SelectorMissing

logger = logging.getLogger("trackfetcher.automation")

BASE_URL = "https://www.karaoke-version.com"
LOGIN_URL = f"{BASE_URL}/my/login.html"

COOKIE_AGREE = "#didomi-notice-agree-button"
COOKIE_WAIT_MS = 5000

LOGIN_USER = ["#frm_login", 'input[name="login"]', "input#login", 'input[name="username"]']
LOGIN_PASSWORD = ["#frm_password", 'input[name="password"]', "input#password"]
LOGIN_SUBMIT = ["#sbm", 'button[type="submit"]', 'form#frmLogin button[type="submit"]']

CLICK_TRACK = ["#precount", "#click-track-switch"]

DOWNLOAD_CONTROL = ["a.download"]

# Cart links: "Add to cart" on mixes that were not bought, but some
# templates reuse the same link as the download button ("Download")
CART_CONTROL = [
    'a[id^="link_addcart_"]',
    "a.addcart",
    "button.addcart",
]

MODAL_CLOSE = "div.modal__overlay div.modal button"
MODAL_WAIT_MS = 5000


def accept_cookie_consent(session) -> bool:
    """Click the cookie banner's "agree" button if it shows up."""
    try:
        button = session.wait_for_selector(COOKIE_AGREE, COOKIE_WAIT_MS, state="visible")
    except SelectorMissing:
        logger.info("Cookie banner not found or already handled")
        return False
    session.click(button)
    session.wait_for_network_idle(COOKIE_WAIT_MS)
    logger.info("Accepted cookie policy")
    return True


def login(session, email: str, password: str) -> None:
    """Log in with *email*/*password* on the login page.

    Raises:
        LoginFailed: If the form fields are missing or we stay on the
            login page after submitting.
    """
    logger.info("Logging in...")
    session.navigate(LOGIN_URL)
    accept_cookie_consent(session)

    user_sel, _ = session.find_first("login_user", LOGIN_USER)
    pass_sel, _ = session.find_first("login_password", LOGIN_PASSWORD)
    submit_sel, submit = session.find_first("login_submit", LOGIN_SUBMIT)
    if not (user_sel and pass_sel and submit_sel):
        raise LoginFailed(
            f"Login selectors not found (user={user_sel}, "
            f"password={pass_sel}, submit={submit_sel})"
        )

    session.type_text(user_sel, email)
    session.type_text(pass_sel, password)
    session.click(submit)
    session.wait_for_network_idle(session.page_load_ms)

    if "/my/login" in session.url:
        raise LoginFailed("Still on the login page after submitting credentials")
    logger.info("Login successful")


def mix_title(session) -> str:
    """Song name from the page title ("Artist - Song (...) | Karaoke Version")."""
    return session.title().split("|")[0].strip()


def set_click_track(handle, enabled: bool) -> bool | None:
    """Switch the "Intro Click" toggle to *enabled*.

    Some templates have no toggle; that is not an error.

    Returns:
        The resulting state, or None if the toggle is absent.
    """
    for selector in CLICK_TRACK:
        checked = handle.is_checked(selector)
        if checked is None:
            continue
        if checked != enabled:
            handle.activate(handle.query(selector))
            logger.info(f"{'Enabled' if enabled else 'Disabled'} 'Intro Click' track")
        else:
            logger.info(f"'Intro Click' already {'enabled' if enabled else 'disabled'}")
        return enabled
    logger.info("No 'Intro Click' toggle on this mix")
    return None


def find_download_control(session, handle):
    """Return the mix-level download button.

    ``a.download`` is looked up in the mixer's context first, then in the
    top-level page.  A cart link is only accepted when it reads
    "Download"; an "Add to cart" link is never returned.

    Raises:
        SelectorMissing: If no download control is present.
    """
    for selector in DOWNLOAD_CONTROL:
        element = handle.query(selector)
        if element is not None:
            return element
    selector, element = session.find_first("download_control", DOWNLOAD_CONTROL)
    if element is not None:
        return element

    for selector in CART_CONTROL:
        element = handle.query(selector) or session.find(selector)
        if element is not None and "download" in handle.text_of(element).lower():
            logger.info(f"Using cart link {selector} as the download button")
            return element
    raise SelectorMissing("Download button not found", selector=DOWNLOAD_CONTROL[0])


def ensure_purchased(session, handle) -> None:
    """Check that the mix can be downloaded (it shows "Download", not "Add to cart").

    Raises:
        NotPurchased: If the download button is missing or is a cart button.
    """
    try:
        control = find_download_control(session, handle)
    except SelectorMissing as e:
        raise NotPurchased("This song has not been purchased", selector=e.selector) from e
    text = handle.text_of(control).lower()
    if "download" not in text:
        raise NotPurchased(
            f"This song has not been purchased (button reads {text!r})",
            selector=DOWNLOAD_CONTROL[0],
        )


def dismiss_modal(session) -> bool:
    """Close the download confirmation modal if it appears."""
    try:
        button = session.wait_for_selector(MODAL_CLOSE, MODAL_WAIT_MS, state="visible")
        button.click()
        return True
    except SelectorMissing:
        return False
    except PlaywrightError as e:
        logger.debug(f"Modal close click failed: {e}")
        return False
