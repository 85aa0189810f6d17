"""Read-only table of product names that options-file directives may reference."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import cast

import yaml

from flexlm_options.constants import PRODUCT_TABLE_SCHEMA_VERSION


@dataclass(frozen=True, slots=True)
class ProductCatalog:
    """Exact-spelling set of valid FlexLM feature names."""

    names: frozenset[str]
    source: str = "<memory>"

    @classmethod
    def from_names(cls, names: Iterable[str], *, source: str = "<memory>") -> ProductCatalog:
        cleaned: set[str] = set()
        for index, name in enumerate(names):
            if not isinstance(name, str) or not name.strip():
                raise ValueError(f"{source}: products[{index}] must be a non-empty string")
            cleaned.add(name.strip())
        return cls(names=frozenset(cleaned), source=source)

    @classmethod
    def from_file(cls, path: str | Path) -> ProductCatalog:
        candidate = Path(path).expanduser().resolve()
        try:
            with candidate.open("r", encoding="utf-8") as handle:
                loaded = cast("object", yaml.safe_load(handle))
        except yaml.YAMLError as exc:
            raise ValueError(f"{candidate}: invalid YAML ({exc})") from exc
        except OSError as exc:
            raise ValueError(f"unable to read product table {candidate}: {exc}") from exc

        if isinstance(loaded, list):
            return cls.from_names(cast("list[str]", loaded), source=str(candidate))
        if not isinstance(loaded, dict):
            raise ValueError(
                f"{candidate}: expected a mapping with a 'products' list, got {type(loaded).__name__}"
            )
        version = loaded.get("schema_version", PRODUCT_TABLE_SCHEMA_VERSION)
        if version != PRODUCT_TABLE_SCHEMA_VERSION:
            raise ValueError(
                f"{candidate}: unsupported schema_version {version!r}; "
                f"expected {PRODUCT_TABLE_SCHEMA_VERSION}"
            )
        products = loaded.get("products")
        if not isinstance(products, list):
            raise ValueError(f"{candidate}: 'products' must be a list")
        return cls.from_names(cast("list[str]", products), source=str(candidate))

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name in self.names

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self.names))

    def __len__(self) -> int:
        return len(self.names)


def _bundled_table_path() -> Path:
    return Path(__file__).resolve().parent.parent / "data" / "products.yaml"


@lru_cache(maxsize=8)
def load_product_catalog(path: str | Path | None = None) -> ProductCatalog:
    """Load the product table from disk with deterministic caching."""

    resolved = _bundled_table_path() if path is None else Path(path).expanduser().resolve()
    return ProductCatalog.from_file(resolved)


__all__ = ["ProductCatalog", "load_product_catalog"]
