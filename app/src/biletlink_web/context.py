"""Per-run site state that pages read instead of module globals."""
import logging
from dataclasses import dataclass, field
from typing import Optional

from .slugs import city_to_slug


@dataclass(frozen=True)
class City:
    code: str
    name: str


DEFAULT_CITIES: tuple[City, ...] = (
    City(code="34", name="İstanbul"),
    City(code="06", name="Ankara"),
    City(code="35", name="İzmir"),
    City(code="07", name="Antalya"),
    City(code="16", name="Bursa"),
)


@dataclass
class SiteContext:
    cities: tuple[City, ...] = DEFAULT_CITIES
    selected_city: Optional[City] = None
    _logger: logging.Logger = field(
        default_factory=lambda: logging.getLogger(__name__), repr=False, compare=False
    )

    def find_city(self, name_or_slug: str) -> Optional[City]:
        wanted = city_to_slug(name_or_slug)
        if not wanted:
            return None
        for city in self.cities:
            if city_to_slug(city.name) == wanted or city.code == name_or_slug.strip():
                return city
        return None

    def search_cities(self, query: str, limit: int = 8) -> list[City]:
        q = query.strip().lower()
        if not q:
            return []
        slug_q = city_to_slug(q)
        matches = [
            c for c in self.cities
            if q in c.name.lower() or (slug_q and slug_q in city_to_slug(c.name)) or q in c.code
        ]
        return matches[:limit]

    def select_city(self, name_or_slug: str) -> Optional[City]:
        """Select a known city; unknown names leave the selection unchanged."""
        city = self.find_city(name_or_slug)
        if city is None:
            self._logger.warning("city_select_unknown value=%s", name_or_slug)
            return None
        self.selected_city = city
        self._logger.info("city_selected code=%s name=%s", city.code, city.name)
        return city

    def clear_city(self) -> None:
        self.selected_city = None

    def city_slug(self) -> str:
        return city_to_slug(self.selected_city.name) if self.selected_city else ""

    def home_path(self) -> str:
        slug = self.city_slug()
        return f"/{slug}" if slug else "/"
