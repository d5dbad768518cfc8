"""linkpulse: client-side delivery layer for the LinkPulse service.

Sends analytics events in batches, fetches in-app messages and decides
locally which of them may be shown, and wraps the referral and deferred
deep link endpoints. All network work goes through a single resilient
request executor with classified failures and backoff retries.
"""

__version__ = "1.4.0"

VERSION = __version__
