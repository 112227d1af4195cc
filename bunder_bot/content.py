"""
content.py

Loads the static bot content (canned replies per intent, demo partner
companies, weather trivia) from `content.yml`.
"""
from pathlib import Path
import logging
from typing import Dict, List, NamedTuple, Optional

import yaml

logger = logging.getLogger(__name__)

DEFAULT_PATH = Path(__file__).parent / "content.yml"


class Company(NamedTuple):
    name: str
    industry: str
    region: str
    size: str
    interests: str


class Content:
    """Read-only view over the YAML content file."""

    def __init__(self, path: Optional[str] = None):
        self.path = Path(path) if path else DEFAULT_PATH
        self.responses: Dict[str, List[str]] = {}
        self.companies: List[Company] = []
        self.weather_facts: List[str] = []
        self._load()

    def _load(self):
        p = Path(self.path)
        if not p.exists():
            logger.warning("Content file %s not found; canned replies are empty", p)
            return

        data = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
        for key, items in (data.get("responses") or {}).items():
            texts = [str(t).strip() for t in (items or []) if t]
            if texts:
                self.responses[str(key)] = texts

        for item in data.get("companies") or []:
            name = item.get("name")
            if not name:
                continue
            self.companies.append(
                Company(
                    name=str(name),
                    industry=str(item.get("industry", "")),
                    region=str(item.get("region", "")),
                    size=str(item.get("size", "")),
                    interests=str(item.get("interests", "")),
                )
            )

        self.weather_facts = [str(f).strip() for f in data.get("weather_facts") or [] if f]

    def replies_for(self, category: str) -> List[str]:
        return self.responses.get(category) or self.responses.get("unknown") or [""]

    def find_company(self, text: str) -> Optional[Company]:
        """Case-insensitive substring match, in either direction, against company names."""
        needle = (text or "").strip().lower()
        if not needle:
            return None
        for company in self.companies:
            name = company.name.lower()
            if needle in name or name in needle:
                return company
        return None

    def company_by_name(self, name: str) -> Optional[Company]:
        for company in self.companies:
            if company.name == name:
                return company
        return None


__all__ = ["Company", "Content"]
