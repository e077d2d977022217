# ebay_watch/storage.py
import json
import logging
from pathlib import Path
from typing import Any, Mapping, Optional, Union

from pydantic import ValidationError

from ebay_watch.config import Settings, settings as default_settings
from ebay_watch.errors import PersistenceError
from ebay_watch.schemas import SearchCriteria

logger = logging.getLogger(__name__)


class CriteriaStore:
    """Single JSON file holding the one active search criteria record."""

    def __init__(self, path: Union[str, Path, None] = None, cfg: Optional[Settings] = None):
        cfg = cfg or default_settings
        self.path = Path(path or cfg.CRITERIA_FILE)

    def _read(self) -> dict[str, Any]:
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise PersistenceError(f"cannot read {self.path}: {e}") from e
        if not isinstance(data, dict):
            raise PersistenceError(f"{self.path} does not hold a JSON object")
        return data

    def load_raw(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            return self._read()
        except PersistenceError as e:
            logger.error("Error loading criteria: %s", e)
            return {}

    def load(self) -> Optional[SearchCriteria]:
        if not self.path.exists():
            return None
        try:
            return SearchCriteria.model_validate(self._read())
        except (PersistenceError, ValidationError) as e:
            logger.error("Error loading criteria: %s", e)
            return None

    def save(self, criteria: Union[SearchCriteria, Mapping[str, Any]]) -> bool:
        data = criteria.to_json() if isinstance(criteria, SearchCriteria) else dict(criteria)
        try:
            self.path.write_text(json.dumps(data, indent=2), encoding="utf-8")
        except (OSError, TypeError, ValueError) as e:
            logger.error("Error saving criteria to %s: %s", self.path, e)
            return False
        return True
