from functools import lru_cache
from typing import Callable, Mapping, Optional, Sequence, Union

from . import config


class CategoryNameCache:
    """
    Мемоизированное разрешение id категории в имя.
    Неизвестный id возвращается как есть - ошибок не бывает.

    Пути склеиваются в том порядке, в котором переданы id; во всём проекте
    это порядок от внешней категории к ближайшей.
    """

    def __init__(
        self,
        names: Union[Mapping[str, str], Callable[[str], Optional[str]]],
        separator: str = config.PATH_SEPARATOR,
    ):
        lookup = names.get if isinstance(names, Mapping) else names
        self.separator = separator

        def resolve(category_id: str) -> str:
            name = lookup(category_id)
            return name if name else category_id

        # отдельный кэш на каждый экземпляр (имена разных загрузок не смешиваются)
        self._resolve = lru_cache(maxsize=None)(resolve)

    def resolve_name(self, category_id: str) -> str:
        return self._resolve(category_id)

    def compose_path(self, category_ids: Sequence[str]) -> str:
        return self.separator.join(map(self.resolve_name, category_ids))

    def cache_info(self):
        return self._resolve.cache_info()

    def cache_clear(self) -> None:
        self._resolve.cache_clear()
