import asyncio
import logging
from typing import Optional, Tuple, Union

from . import config
from .async_ops import fetch_catalog, retry_failures
from .domain import (
    CatalogEntry,
    CatalogNotLoaded,
    FilterCriteria,
    InvalidCriteria,
    LoadError,
    LoadSuperseded,
    SortCriteria,
)
from .ftypes import Either
from .names import CategoryNameCache
from .recursion import flatten, parse_tree
from .state import CatalogSnapshot, CatalogState
from .transforms import evaluate

logger = logging.getLogger(__name__)

QueryError = Union[CatalogNotLoaded, InvalidCriteria]


class CatalogService:
    """
    Фасад каталога: загрузка (дерево -> пути -> товары -> индекс) и запросы.

    tree_source должен уметь ``await get_tree()`` (и ``get_tree(large=True)``
    для большого дерева), product_source - ``await get_product(id)``.
    """

    def __init__(
        self,
        tree_source,
        product_source,
        state: Optional[CatalogState] = None,
        batch_size: int = config.BATCH_SIZE,
        retries: int = config.FETCH_RETRIES,
        category_prefix: str = config.CATEGORY_PREFIX,
    ):
        self.tree_source = tree_source
        self.product_source = product_source
        self.state = state or CatalogState()
        self.batch_size = batch_size
        self.retries = retries
        self.category_prefix = category_prefix

    # ============ Загрузка ============

    async def load(self, large: bool = False) -> Either[LoadError, CatalogSnapshot]:
        """
        Полная загрузка каталога. Публикуется только если за время загрузки
        не началась новая и не было cancel(); битое дерево - ошибка без
        публикации. Несработавшие после повторов запросы остаются в
        snapshot.failures (частичная загрузка).
        """
        generation = self.state.begin_load()

        def is_current() -> bool:
            return self.state.is_current(generation)

        logger.info("Catalog load #%d started", generation)
        raw_tree = await (self.tree_source.get_tree(large=True) if large else self.tree_source.get_tree())
        if not is_current():
            return Either.left(LoadSuperseded(generation))

        parsed = parse_tree(raw_tree, self.category_prefix)
        if parsed.is_left:
            logger.error("Catalog load #%d aborted: %s", generation, parsed.error.message)
            return parsed

        flat = flatten(parsed.value)
        fetch_one = self.product_source.get_product

        result = await fetch_catalog(
            flat.ancestor_paths, fetch_one, self.batch_size, is_current
        )
        result = await retry_failures(
            result, flat.ancestor_paths, fetch_one, self.retries, self.batch_size, is_current
        )

        if result.cancelled or not is_current():
            logger.info("Catalog load #%d superseded, results discarded", generation)
            return Either.left(LoadSuperseded(generation))

        if result.failures:
            logger.warning(
                "Catalog load #%d is partial: %d products failed (%s)",
                generation,
                len(result.failures),
                ", ".join(f.id for f in result.failures),
            )

        snapshot = CatalogSnapshot(
            generation=generation,
            index=result.index,
            names=CategoryNameCache(flat.category_names),
            category_tree=flat.category_tree,
            not_found=result.not_found,
            failures=result.failures,
        )
        self.state.commit(snapshot)
        logger.info(
            "Catalog load #%d committed: %d entries, %d not found",
            generation,
            len(result.index),
            len(result.not_found),
        )
        return Either.right(snapshot)

    def run_load(self, large: bool = False) -> Either[LoadError, CatalogSnapshot]:
        """Синхронная обёртка для использования в UI"""
        return asyncio.run(self.load(large))

    def cancel(self) -> None:
        self.state.cancel()

    # ============ Запросы ============

    def query(
        self, criteria: FilterCriteria, sort: SortCriteria
    ) -> Either[QueryError, Tuple[CatalogEntry, ...]]:
        snapshot = self.state.snapshot
        if snapshot.is_none():
            return Either.left(CatalogNotLoaded())
        current = snapshot.value
        return evaluate(current.index, criteria, sort, current.names)

    def category_options(self) -> Tuple[Tuple[str, str, int], ...]:
        """(id, имя, глубина) для выбора категорий, без повторов"""
        snapshot = self.state.snapshot
        if snapshot.is_none():
            return ()
        current = snapshot.value
        seen = set()
        options = []
        for category_id, depth in current.category_tree.walk():
            if category_id in seen:
                continue
            seen.add(category_id)
            options.append((category_id, current.names.resolve_name(category_id), depth))
        return tuple(options)
