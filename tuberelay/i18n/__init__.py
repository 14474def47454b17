import functools
import json
import logging
import os
from typing import Any, Callable, Dict, List, Optional

from tuberelay.config.settings import config

logger = logging.getLogger(__name__)

LOCALES_DIR = os.path.join(os.path.dirname(os.path.dirname(__file__)), "locales")


class I18n:
    """JSON message catalogs keyed by dotted paths (e.g. "error.invalid_url")"""

    def __init__(self, locales_dir: str = LOCALES_DIR, default_locale: Optional[str] = None):
        self.locales: Dict[str, Dict[str, Any]] = {}
        self.default_locale = default_locale or config.i18n.default_locale
        self.load_locales(locales_dir)

    def load_locales(self, locales_dir: str) -> None:
        if not os.path.isdir(locales_dir):
            logger.warning(f"Locales directory not found at {locales_dir}")
            return

        for filename in sorted(os.listdir(locales_dir)):
            if not filename.endswith(".json"):
                continue
            locale_code = filename[:-5]
            try:
                with open(os.path.join(locales_dir, filename), "r", encoding="utf-8") as f:
                    self.locales[locale_code] = json.load(f)
            except (OSError, ValueError) as e:
                logger.error(f"Error loading locale {locale_code}: {e}")

    def _chain(self, locale: Optional[str]) -> List[str]:
        """Catalogs to try in order: requested, default, English"""
        chain = []
        for code in (locale, self.default_locale, "en"):
            if code and code in self.locales and code not in chain:
                chain.append(code)
        return chain

    @staticmethod
    def _lookup(catalog: Dict[str, Any], key: str) -> Optional[str]:
        value: Any = catalog
        for part in key.split("."):
            if not isinstance(value, dict) or part not in value:
                return None
            value = value[part]
        return value if isinstance(value, str) else None

    def get(self, key: str, locale: Optional[str] = None, **kwargs) -> str:
        """Translated message, or the key itself when no catalog has it"""
        for code in self._chain(locale):
            message = self._lookup(self.locales[code], key)
            if message is None:
                continue
            try:
                return message.format(**kwargs)
            except (KeyError, IndexError):
                return message
        return key

    def translator(self, locale: Optional[str]) -> Callable[..., str]:
        return functools.partial(self.get, locale=locale)


i18n = I18n()
