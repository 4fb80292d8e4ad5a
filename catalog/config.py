# catalog/config.py
# Настройки каталога. Значения по умолчанию можно переопределить через
# переменные окружения или файл .env в корне проекта.

import os
from pathlib import Path

from dotenv import load_dotenv

_PROJECT_ROOT = Path(__file__).parent.parent

load_dotenv(dotenv_path=_PROJECT_ROOT / ".env")

# ============ Дерево категорий ============

# id, начинающиеся с этого префикса, считаются категориями, остальные - товарами
CATEGORY_PREFIX = os.getenv("CATALOG_CATEGORY_PREFIX", "s")

# Разделитель при склейке пути из имён категорий
PATH_SEPARATOR = " > "

# ============ Атрибуты товара ============

ATTRIBUTE_GROUP = os.getenv("CATALOG_ATTRIBUTE_GROUP", "AGA")
PRICE_CODE = "PRI"
VOLUME_CODE = "VOL"
STOCK_CODE = "LGA"

# ============ Загрузка ============

# Сколько запросов товаров выполняется одновременно (ширина батча)
BATCH_SIZE = int(os.getenv("CATALOG_BATCH_SIZE", "10"))

# Сколько раз повторять запросы, завершившиеся ошибкой
FETCH_RETRIES = int(os.getenv("CATALOG_FETCH_RETRIES", "1"))

# Имитация сетевой задержки источника товаров (секунды)
SOURCE_LATENCY = float(os.getenv("CATALOG_SOURCE_LATENCY", "0.01"))

DATA_PATH = os.getenv(
    "CATALOG_DATA_PATH", str(_PROJECT_ROOT / "data" / "catalog.json")
)

# ============ Логирование ============

LOG_LEVEL = os.getenv("CATALOG_LOG_LEVEL", "INFO").upper()
LOG_FILE = os.getenv("CATALOG_LOG_FILE") or None
