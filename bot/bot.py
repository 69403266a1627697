"""
Medicine analog bot — Telegram bot (aiogram 3)

Логика:
- Текст от пользователя → поиск лекарств по названию → до 10 кнопок с результатами
- Кнопка лекарства (search_analog:<id>) → поиск аналогов в целевой стране →
  до 10 кнопок-ссылок на страницы аналогов
- show_medicine:<id> — заглушка под будущую информацию о ценах
"""

import asyncio
import logging
import sys
from typing import Iterable, List, Optional

from aiogram import Bot, Dispatcher, F
from aiogram.client.default import DefaultBotProperties
from aiogram.filters import Command, CommandStart
from aiogram.types import CallbackQuery, InlineKeyboardButton, InlineKeyboardMarkup, Message
from aiogram.utils.text_decorations import html_decoration

from .config import ConfigError, Settings, load_settings
from pillintrip import (
    Analog,
    Medicine,
    MedicineInfo,
    PillintripClient,
    PillintripDecodeError,
    PillintripError,
)

logging.basicConfig(level=logging.INFO)

# ─────────────────────────────────────────────────────────────
# Тексты (UX)
# ─────────────────────────────────────────────────────────────

START_MESSAGE = "Привет. Я помогу вам найти аналоги лекарств в Таиланде. Для поиска введите название лекарства."

HELP_MESSAGE = """Как пользоваться 👇

1) Отправь название лекарства
2) Выбери нужное лекарство из списка
3) Открой аналог по ссылке — рядом указан процент совпадения"""

NOTHING_FOUND = "Мне не удалось ничего найти."
MEDICINES_FOUND = "Вот что я нашел. Выберите лекарство, для которого нужно найти аналоги."
NO_ANALOGS = 'Мне не удалось найти аналоги для "{name}".'
ANALOGS_FOUND = 'Вот аналоги для "{name}":'
SHOW_MEDICINE = "Тут инфа по ценам для MedicineId={medicine_id}"

SEARCH_ANALOG_PREFIX = "search_analog:"
SHOW_MEDICINE_PREFIX = "show_medicine:"

MAX_BUTTONS = 10


# ─────────────────────────────────────────────────────────────
# Клавиатуры
# ─────────────────────────────────────────────────────────────

def build_medicines_keyboard(medicines: Iterable[Medicine]) -> InlineKeyboardMarkup:
    rows: List[List[InlineKeyboardButton]] = []
    for medicine in medicines:
        if len(rows) == MAX_BUTTONS:
            break
        rows.append([InlineKeyboardButton(text=medicine.name, callback_data=SEARCH_ANALOG_PREFIX + medicine.id)])
    return InlineKeyboardMarkup(inline_keyboard=rows)


def analog_url(base_url: str, slug: str) -> str:
    return f"{base_url.rstrip('/')}/{slug}"


def build_analogs_keyboard(analogs: Iterable[Analog], base_url: str) -> InlineKeyboardMarkup:
    # аналоги ведут на сайт, а не в show_medicine
    rows: List[List[InlineKeyboardButton]] = []
    for analog in analogs:
        if len(rows) == MAX_BUTTONS:
            break
        rows.append([InlineKeyboardButton(text=analog.label, url=analog_url(base_url, analog.analog_slug))])
    return InlineKeyboardMarkup(inline_keyboard=rows)


def parse_callback_id(payload: Optional[str], prefix: str) -> Optional[int]:
    """``"search_analog:42"`` → 42; None if the payload is not ours or malformed."""
    if not payload or not payload.startswith(prefix):
        return None
    try:
        return int(payload[len(prefix):])
    except ValueError:
        return None


# ─────────────────────────────────────────────────────────────
# Handlers
# ─────────────────────────────────────────────────────────────

async def handle_start(msg: Message):
    await msg.answer(START_MESSAGE)


async def handle_help(msg: Message):
    await msg.answer(HELP_MESSAGE)


async def handle_text(msg: Message, api: PillintripClient):
    # запрос уходит как есть, без нормализации, даже /команды и пробелы
    query = msg.text or ""

    try:
        medicines = await api.search_medicines(query)
    except PillintripError as e:
        logging.warning("SEARCH ERROR (%s): %s", e.__class__.__name__, e)
        medicines = []

    if not medicines:
        return await msg.answer(NOTHING_FOUND)

    await msg.answer(MEDICINES_FOUND, reply_markup=build_medicines_keyboard(medicines))


async def handle_search_analog_callback(cb: CallbackQuery, api: PillintripClient, settings: Settings):
    await cb.answer()

    medicine_id = parse_callback_id(cb.data, SEARCH_ANALOG_PREFIX)
    info = MedicineInfo()
    analogs: List[Analog] = []

    if medicine_id is None:
        logging.warning("Bad search_analog payload: %r", cb.data)
    else:
        try:
            result = await api.search_analogs(medicine_id)
            info, analogs = result.medicine_info, result.analogs
        except PillintripDecodeError as e:
            logging.warning("ANALOGS DECODE ERROR: %s", e)
            info = e.medicine_info
        except PillintripError as e:
            logging.warning("ANALOGS ERROR (%s): %s", e.__class__.__name__, e)

    name = html_decoration.quote(info.medicine_name)
    if not analogs:
        return await cb.message.answer(NO_ANALOGS.format(name=name))

    await cb.message.answer(
        ANALOGS_FOUND.format(name=name),
        reply_markup=build_analogs_keyboard(analogs, settings.medicine_base_url),
    )


async def handle_show_medicine_callback(cb: CallbackQuery):
    await cb.answer()

    medicine_id = parse_callback_id(cb.data, SHOW_MEDICINE_PREFIX)
    if medicine_id is None:
        logging.warning("Bad show_medicine payload: %r", cb.data)
        return

    await cb.message.answer(SHOW_MEDICINE.format(medicine_id=medicine_id))


async def on_shutdown(api: PillintripClient):
    await api.close()


# ─────────────────────────────────────────────────────────────
# Run
# ─────────────────────────────────────────────────────────────

def build_dispatcher(settings: Settings, api: PillintripClient) -> Dispatcher:
    # settings и api попадают в хендлеры через workflow data
    dp = Dispatcher(settings=settings, api=api)

    dp.message.register(handle_start, CommandStart())
    dp.message.register(handle_help, Command("help"))
    dp.message.register(handle_text, F.text)

    dp.callback_query.register(handle_search_analog_callback, F.data.startswith(SEARCH_ANALOG_PREFIX))
    dp.callback_query.register(handle_show_medicine_callback, F.data.startswith(SHOW_MEDICINE_PREFIX))

    dp.shutdown.register(on_shutdown)
    return dp


def build_api(settings: Settings) -> PillintripClient:
    return PillintripClient(
        api_key=settings.api_key,
        home_country=settings.home_country_id,
        target_country=settings.target_country_id,
        api_url=settings.api_url,
        timeout=settings.api_timeout,
    )


def main():
    try:
        settings = load_settings()
    except ConfigError as e:
        logging.error("%s", e)
        sys.exit(2)

    bot = Bot(
        token=settings.bot_token,
        default=DefaultBotProperties(parse_mode="HTML"),
    )
    dp = build_dispatcher(settings, build_api(settings))

    logging.info("Medicine analog bot started: %s", settings)
    asyncio.run(dp.start_polling(bot))


if __name__ == "__main__":
    main()
