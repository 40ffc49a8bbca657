# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Financial tip client — outbound call to an optional tip provider.
Handles HTTP calls with timeout & fault tolerance; always returns a string.
"""

import httpx

from kutu.core.config import settings
from kutu.core.logging import get_logger
from kutu.metrics.prometheus import TIP_FALLBACKS

logger = get_logger(__name__)

SUPPORTED_LANGUAGES: tuple[str, ...] = ("en", "bm")

DEFAULT_TIPS: dict[str, str] = {
    "en": "Always be disciplined in making your monthly payments. "
          "It's the key to the success of the 'kutu' system.",
    "bm": "Sentiasa berdisiplin dalam membuat bayaran bulanan anda. "
          "Ia adalah kunci kejayaan sistem kutu.",
}

FALLBACK_TIPS: dict[str, str] = {
    "en": "Use your 'kutu' money wisely. Plan your expenses for long-term benefits.",
    "bm": "Gunakan wang kutu anda dengan bijak. "
          "Rancang perbelanjaan anda untuk faedah jangka panjang.",
}

MAX_TIP_LENGTH = 300


class TipClient:
    """Fetches a short savings tip. Failures degrade to a static tip."""

    def get_tip(self, language: str = "en") -> dict[str, str]:
        """Return ``{"language", "tip", "source"}``. Never raises."""
        if language not in SUPPORTED_LANGUAGES:
            language = "en"
        if not settings.TIP_SERVICE_URL:
            return {"language": language, "tip": DEFAULT_TIPS[language], "source": "default"}

        try:
            with httpx.Client(timeout=settings.TIP_TIMEOUT) as client:
                resp = client.get(
                    settings.TIP_SERVICE_URL,
                    params={"language": language},
                )
            resp.raise_for_status()
            tip = str(resp.json().get("tip", "")).strip()
            if not tip:
                raise ValueError("empty tip in response")
            return {"language": language, "tip": tip[:MAX_TIP_LENGTH], "source": "remote"}
        except Exception as exc:
            TIP_FALLBACKS.inc()
            logger.warning("Tip fetch failed, using fallback: %s", exc)
            return {"language": language, "tip": FALLBACK_TIPS[language], "source": "fallback"}
