import logging
from dataclasses import dataclass
from typing import Optional, Tuple

from .domain import CategoryIdTree, FetchFailed
from .ftypes import Maybe
from .index import CatalogIndex
from .names import CategoryNameCache

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CatalogSnapshot:
    """Результат одной завершённой загрузки (одно поколение)"""

    generation: int
    index: CatalogIndex
    names: CategoryNameCache
    category_tree: CategoryIdTree
    not_found: Tuple[str, ...] = ()
    failures: Tuple[FetchFailed, ...] = ()

    @property
    def partial(self) -> bool:
        return bool(self.failures)


class CatalogState:
    """
    Владелец опубликованного каталога.

    Каждая загрузка получает номер поколения; её результат публикуется,
    только если за время загрузки не началась новая и не было отмены.
    """

    def __init__(self):
        self._generation = 0
        self._snapshot: Optional[CatalogSnapshot] = None

    @property
    def generation(self) -> int:
        return self._generation

    def begin_load(self) -> int:
        self._generation += 1
        logger.debug("Load generation %d started", self._generation)
        return self._generation

    def is_current(self, generation: int) -> bool:
        return generation == self._generation

    def cancel(self) -> None:
        """Делает все незавершённые загрузки устаревшими"""
        self._generation += 1
        logger.info("In-flight catalog loads cancelled (generation now %d)", self._generation)

    def commit(self, snapshot: CatalogSnapshot) -> bool:
        if not self.is_current(snapshot.generation):
            logger.info(
                "Discarding stale load #%d (current is #%d)",
                snapshot.generation,
                self._generation,
            )
            return False
        self._snapshot = snapshot
        return True

    @property
    def snapshot(self) -> Maybe[CatalogSnapshot]:
        return Maybe.from_optional(self._snapshot)
