"""Browser launch constants."""

# Each flag addresses a specific automation-detection vector or a Docker quirk.
LAUNCH_ARGS: list[str] = [
    "--disable-blink-features=AutomationControlled",
    "--disable-dev-shm-usage",
    "--no-sandbox",
    "--disable-infobars",
    "--window-size=1920,1080",
]

VIEWPORT = {"width": 1920, "height": 1080}

# Patches the most common automation fingerprints before any page loads.
STEALTH_JS = """
Object.defineProperty(navigator, 'webdriver', { get: () => undefined });
if (!window.chrome) { window.chrome = {}; }
if (!window.chrome.runtime) { window.chrome.runtime = {}; }
"""

# Attribute used to give DOM nodes a stable identity for deduplication.
IDENTITY_ATTRIBUTE = "data-harvester-id"

# Substrings of Playwright error messages meaning the page is gone for good.
CLOSED_TARGET_MARKERS = (
    "Target closed",
    "Target page, context or browser has been closed",
    "Browser has been closed",
    "Connection closed",
)
