import sys
import os
import time
import streamlit as st

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from catalog import config
from catalog.domain import SORT_KEYS, FilterCriteria, SortCriteria
from catalog.log import setup_logging
from catalog.service import CatalogService
from catalog.sources import JsonCatalogSource
from catalog.transforms import category_label
from Catalog_Analytics.report import catalog_summary, category_breakdown, load_report


# ============ Кэширование ресурсов ============
@st.cache_resource
def get_service(batch_size: int) -> CatalogService:
    setup_logging()
    source = JsonCatalogSource.from_file(config.DATA_PATH)
    return CatalogService(source, source, batch_size=batch_size)


def format_price(value: float) -> str:
    return f"{value:.2f}"


SORT_LABELS = {
    "id": "ID",
    "name": "Название",
    "price": "Цена",
    "volume": "Объём",
    "stock": "Остаток",
    "categories": "Категории",
}


# ============ Инициализация ============
st.set_page_config(
    page_title="Catalog View",
    page_icon="📦",
    layout="wide",
    initial_sidebar_state="expanded",
)

# ============ SIDEBAR - Загрузка ============
with st.sidebar:
    st.header("📥 Загрузка каталога")
    batch_size = st.number_input(
        "Размер батча", min_value=1, max_value=100, value=config.BATCH_SIZE, key="batch_size"
    )
    large = st.checkbox("Большое дерево", value=False, key="large_tree")
    reload_clicked = st.button("🔄 Загрузить", type="primary", use_container_width=True)

service = get_service(int(batch_size))

if reload_clicked or service.state.snapshot.is_none():
    with st.spinner("⏳ Загружаем дерево и товары..."):
        start = time.perf_counter()
        loaded = service.run_load(large=large)
        elapsed = (time.perf_counter() - start) * 1000

    if loaded.is_left:
        st.error(f"❌ Каталог не загружен: {loaded.error.message}")
    else:
        st.session_state.load_ms = elapsed

snapshot = service.state.snapshot
if snapshot.is_none():
    st.stop()
current = snapshot.value

# ============ HEADER ============
st.title("📦 Каталог товаров")
report = load_report(current)
st.caption(
    f"Загрузка #{report['generation']} · записей: {report['entries']} · "
    f"{st.session_state.get('load_ms', 0.0):.0f} ms"
)
if report["not_found"]:
    st.info(f"Не найдены в источнике (показаны заглушки): {', '.join(report['not_found'])}")
if report["partial"]:
    st.warning(
        "⚠️ Частичная загрузка, не удалось получить: "
        + ", ".join(f"{pid} ({reason})" for pid, reason in report["failed"].items())
    )

# ============ Фильтры ============
with st.expander("🔍 Фильтры", expanded=True):
    col1, col2, col3 = st.columns(3)
    with col1:
        id_text = st.text_input("ID содержит", key="f_id")
        name_text = st.text_input("Название содержит", key="f_name")
    with col2:
        min_price = st.number_input("Цена от", min_value=0.0, value=None, key="f_min_price")
        max_price = st.number_input("Цена до", min_value=0.0, value=None, key="f_max_price")
    with col3:
        min_volume = st.number_input("Объём от", min_value=0.0, value=None, key="f_min_volume")
        max_volume = st.number_input("Объём до", min_value=0.0, value=None, key="f_max_volume")

    options = service.category_options()
    labels = {cid: ("  " * depth) + name for cid, name, depth in options}
    selected = st.multiselect(
        "📂 Категории",
        [cid for cid, _, _ in options],
        format_func=lambda cid: labels.get(cid, cid),
        key="f_categories",
    )
    in_stock_only = st.checkbox("Только в наличии", key="f_in_stock")

# ============ Сортировка ============
col1, col2 = st.columns([3, 1])
with col1:
    sort_key = st.selectbox(
        "Сортировать по", SORT_KEYS, format_func=SORT_LABELS.get, key="s_key"
    )
with col2:
    sort_order = st.radio(
        "Порядок",
        ["asc", "desc"],
        format_func=lambda o: "↑" if o == "asc" else "↓",
        horizontal=True,
        key="s_order",
    )

criteria = FilterCriteria(
    id_substring=id_text,
    name_substring=name_text,
    min_price=min_price,
    max_price=max_price,
    min_volume=min_volume,
    max_volume=max_volume,
    in_stock_only=in_stock_only,
    selected_categories=frozenset(selected),
)

# Streamlit перезапускает скрипт при любом изменении виджета,
# поэтому запрос просто выполняется заново
result = service.query(criteria, SortCriteria(key=sort_key, order=sort_order))

if result.is_left:
    st.error(f"❌ {result.error.message}")
    st.stop()

entries = result.value
summary = catalog_summary(entries)

col1, col2, col3, col4 = st.columns(4)
with col1:
    st.metric("📦 Найдено", summary["total_products"])
with col2:
    st.metric("✅ В наличии", summary["in_stock"])
with col3:
    st.metric("💰 Средняя цена", format_price(summary["average_price"]))
with col4:
    st.metric("🫙 Заглушки", summary["placeholders"])

st.divider()

if not entries:
    st.warning("Товары не найдены. Попробуйте изменить фильтры.")
else:
    st.dataframe(
        [
            {
                "ID": e.product.id,
                "Название": e.product.name or "—",
                "Цена": e.product.price,
                "Объём": e.product.volume,
                "Остаток": e.product.stock,
                "Категории": category_label(e, current.names),
            }
            for e in entries
        ],
        use_container_width=True,
        hide_index=True,
    )

with st.expander("📊 По категориям"):
    for row in category_breakdown(entries, current.names):
        st.write(f"**{row['name']}**: {row['products']} шт, в наличии {row['in_stock']}")
