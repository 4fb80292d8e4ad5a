import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, List, Mapping, Optional, Tuple

from . import config
from .domain import FetchFailed, NotFound, Product, placeholder_product
from .ftypes import Either, Maybe
from .index import CatalogIndex
from .lazy import iter_batches

logger = logging.getLogger(__name__)

# async (id) -> Product | None; None - товара нет, исключение - сбой запроса
ProductFetcher = Callable[[str], Awaitable[Optional[Product]]]

FetchOutcome = Either[FetchFailed, Maybe[Product]]


@dataclass(frozen=True)
class FetchResult:
    index: CatalogIndex
    not_found: Tuple[str, ...] = ()
    failures: Tuple[FetchFailed, ...] = ()
    cancelled: bool = False


# ============ Один запрос ============


async def fetch_product(product_id: str, fetch_one: ProductFetcher) -> FetchOutcome:
    """
    Запрашивает один товар и различает три исхода:
    Right(Some(product)), Right(Nothing) - не найден, Left(FetchFailed) - сбой.
    Отмена задачи (CancelledError) не перехватывается.
    """
    try:
        product = await fetch_one(product_id)
    except Exception as exc:
        logger.warning("Fetch failed for %s: %r", product_id, exc)
        return Either.left(FetchFailed(product_id, repr(exc)))
    return Either.right(Maybe.from_optional(product))


async def fetch_batch(
    batch: Tuple[str, ...], fetch_one: ProductFetcher
) -> Tuple[Tuple[str, FetchOutcome], ...]:
    """Все запросы батча идут параллельно; результат в порядке batch"""
    outcomes = await asyncio.gather(*(fetch_product(pid, fetch_one) for pid in batch))
    return tuple(zip(batch, outcomes))


# ============ Слияние в индекс ============


def merge_outcomes(
    index: CatalogIndex,
    ancestor_paths: Mapping[str, Tuple[str, ...]],
    outcomes: Tuple[Tuple[str, FetchOutcome], ...],
) -> Tuple[Tuple[str, ...], Tuple[FetchFailed, ...]]:
    """
    Кладёт результаты батча в индекс по id.
    Ненайденные товары заменяются заглушкой, сбои в индекс не попадают.
    Возвращает (ненайденные id, сбои).
    """
    not_found: List[str] = []
    failures: List[FetchFailed] = []

    for product_id, outcome in outcomes:
        if outcome.is_left:
            failures.append(outcome.error)
            continue

        found = outcome.value
        if found.is_none():
            logger.info("%s, using placeholder", NotFound(product_id).message)
            not_found.append(product_id)

        product = found.get_or_else(None) or placeholder_product(product_id)
        index.upsert(product_id, product, ancestor_paths.get(product_id, ()))

    return tuple(not_found), tuple(failures)


# ============ Пакетная загрузка ============


async def fetch_catalog(
    ancestor_paths: Mapping[str, Tuple[str, ...]],
    fetch_one: ProductFetcher,
    batch_size: int = config.BATCH_SIZE,
    is_current: Optional[Callable[[], bool]] = None,
    index: Optional[CatalogIndex] = None,
) -> FetchResult:
    """
    Загружает товары для всех id из ancestor_paths батчами по batch_size.

    Следующий батч стартует только после того, как завершился предыдущий,
    поэтому одновременно в полёте не больше batch_size запросов.
    Если is_current() вернул False (загрузку заменили или отменили),
    загрузка останавливается и результаты батча в индекс не попадают.
    """
    index = CatalogIndex() if index is None else index
    still_current = is_current or (lambda: True)

    not_found: Tuple[str, ...] = ()
    failures: Tuple[FetchFailed, ...] = ()

    for number, batch in enumerate(iter_batches(ancestor_paths, batch_size), 1):
        if not still_current():
            logger.info("Fetch superseded before batch %d, stopping", number)
            return FetchResult(index, not_found, failures, cancelled=True)

        logger.debug("Batch %d: fetching %d products", number, len(batch))
        outcomes = await fetch_batch(batch, fetch_one)

        if not still_current():
            logger.info("Fetch superseded during batch %d, results discarded", number)
            return FetchResult(index, not_found, failures, cancelled=True)

        batch_missing, batch_failures = merge_outcomes(index, ancestor_paths, outcomes)
        not_found += batch_missing
        failures += batch_failures

    logger.debug(
        "Fetched %d products (%d not found, %d failed)",
        len(index),
        len(not_found),
        len(failures),
    )
    return FetchResult(index, not_found, failures)


async def retry_failures(
    result: FetchResult,
    ancestor_paths: Mapping[str, Tuple[str, ...]],
    fetch_one: ProductFetcher,
    attempts: int = config.FETCH_RETRIES,
    batch_size: int = config.BATCH_SIZE,
    is_current: Optional[Callable[[], bool]] = None,
) -> FetchResult:
    """
    Повторяет только упавшие запросы (до attempts раз) в тот же индекс.
    Что делать с оставшимися сбоями, решает вызывающий код.
    """
    for attempt in range(1, attempts + 1):
        if result.cancelled or not result.failures:
            break

        failed_paths = {f.id: ancestor_paths.get(f.id, ()) for f in result.failures}
        logger.info("Retry %d/%d for %d failed products", attempt, attempts, len(failed_paths))

        retried = await fetch_catalog(
            failed_paths, fetch_one, batch_size, is_current, index=result.index
        )
        result = FetchResult(
            index=result.index,
            not_found=result.not_found + retried.not_found,
            failures=retried.failures,
            cancelled=retried.cancelled,
        )

    return result


# ============ Синхронная обёртка ============


def run_fetch_catalog(
    ancestor_paths: Mapping[str, Tuple[str, ...]],
    fetch_one: ProductFetcher,
    batch_size: int = config.BATCH_SIZE,
) -> FetchResult:
    """Синхронная обёртка для использования вне event loop"""
    return asyncio.run(fetch_catalog(ancestor_paths, fetch_one, batch_size))
