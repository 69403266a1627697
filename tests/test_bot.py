# tests/test_bot.py
import asyncio
from unittest.mock import AsyncMock, patch

import pytest

from bot import bot as handlers
from bot.config import ConfigError, Settings
from pillintrip import (
    Analog,
    AnalogSearchResult,
    Medicine,
    MedicineInfo,
    PillintripDecodeError,
    PillintripTransportError,
)

SETTINGS = Settings(
    bot_token="123:abc",
    api_key="secret-key",
    home_country_id=7,
    target_country_id=66,
    medicine_base_url="https://pillintrip.com/ru/medicine",
)


class FakeApi:
    def __init__(self, medicines=None, analogs=None, error=None):
        self.medicines = medicines or []
        self.analogs = analogs
        self.error = error
        self.queries = []
        self.medicine_ids = []

    async def search_medicines(self, query):
        self.queries.append(query)
        if self.error:
            raise self.error
        return self.medicines

    async def search_analogs(self, medicine_id):
        self.medicine_ids.append(medicine_id)
        if self.error:
            raise self.error
        return self.analogs


def _message(text):
    msg = AsyncMock()
    msg.text = text
    return msg


def _callback(data):
    cb = AsyncMock()
    cb.data = data
    cb.message = AsyncMock()
    return cb


def _medicines(n):
    return [Medicine(id=str(100 + i), name=f"Med {i}") for i in range(n)]


def _analogs(n):
    return [Analog(analog_name=f"Analog {i}", analog_slug=f"analog-{i}", percentage=90 - i) for i in range(n)]


# ─────────────────────────────────────────────
# Keyboards
# ─────────────────────────────────────────────

def test_medicines_keyboard_caps_at_ten_in_order():
    markup = handlers.build_medicines_keyboard(_medicines(12))
    rows = markup.inline_keyboard
    assert len(rows) == 10
    assert all(len(row) == 1 for row in rows)
    assert [row[0].callback_data for row in rows] == [f"search_analog:{100 + i}" for i in range(10)]
    assert rows[0][0].text == "Med 0"


def test_medicines_keyboard_short_list():
    markup = handlers.build_medicines_keyboard(_medicines(3))
    assert len(markup.inline_keyboard) == 3


def test_analogs_keyboard_links_out():
    markup = handlers.build_analogs_keyboard(_analogs(11), "https://pillintrip.com/ru/medicine/")
    rows = markup.inline_keyboard
    assert len(rows) == 10
    assert rows[0][0].text == "Analog 0 (90%)"
    assert rows[0][0].url == "https://pillintrip.com/ru/medicine/analog-0"
    assert rows[9][0].url == "https://pillintrip.com/ru/medicine/analog-9"
    assert all(row[0].callback_data is None for row in rows)


def test_parse_callback_id():
    assert handlers.parse_callback_id("search_analog:42", "search_analog:") == 42
    assert handlers.parse_callback_id("search_analog:", "search_analog:") is None
    assert handlers.parse_callback_id("search_analog:x1", "search_analog:") is None
    assert handlers.parse_callback_id("show_medicine:42", "search_analog:") is None
    assert handlers.parse_callback_id(None, "search_analog:") is None


# ─────────────────────────────────────────────
# Handlers
# ─────────────────────────────────────────────

def test_start():
    msg = _message("/start")
    asyncio.run(handlers.handle_start(msg))
    msg.answer.assert_awaited_once_with(handlers.START_MESSAGE)


def test_text_search_renders_ten_buttons():
    api = FakeApi(medicines=_medicines(12))
    msg = _message("aspirin")

    asyncio.run(handlers.handle_text(msg, api))

    assert api.queries == ["aspirin"]
    msg.answer.assert_awaited_once()
    args, kwargs = msg.answer.call_args
    assert args == (handlers.MEDICINES_FOUND,)
    rows = kwargs["reply_markup"].inline_keyboard
    assert len(rows) == 10
    assert all(row[0].callback_data.startswith("search_analog:") for row in rows)


def test_text_search_passes_query_verbatim():
    api = FakeApi(medicines=_medicines(1))
    asyncio.run(handlers.handle_text(_message(" Аспирин Кардио "), api))
    assert api.queries == [" Аспирин Кардио "]


def test_text_search_nothing_found():
    msg = _message("zzz")
    asyncio.run(handlers.handle_text(msg, FakeApi()))
    msg.answer.assert_awaited_once_with(handlers.NOTHING_FOUND)


def test_text_search_api_failure_looks_like_nothing_found():
    msg = _message("aspirin")
    api = FakeApi(error=PillintripTransportError("boom"))
    asyncio.run(handlers.handle_text(msg, api))
    msg.answer.assert_awaited_once_with(handlers.NOTHING_FOUND)


def test_text_sends_commands_and_blank_text_as_is():
    api = FakeApi()
    for text in ("/aspirin", "   "):
        msg = _message(text)
        asyncio.run(handlers.handle_text(msg, api))
        msg.answer.assert_awaited_once_with(handlers.NOTHING_FOUND)
    assert api.queries == ["/aspirin", "   "]


def test_analogs_found():
    result = AnalogSearchResult(
        medicine_info=MedicineInfo(medicine_name="Aspirin"),
        home_country=MedicineInfo(medicine_name="Аспирин"),
        analogs=_analogs(3),
    )
    api = FakeApi(analogs=result)
    cb = _callback("search_analog:42")

    asyncio.run(handlers.handle_search_analog_callback(cb, api, SETTINGS))

    cb.answer.assert_awaited_once()
    assert api.medicine_ids == [42]
    args, kwargs = cb.message.answer.call_args
    assert args == ('Вот аналоги для "Aspirin":',)
    rows = kwargs["reply_markup"].inline_keyboard
    assert [row[0].text for row in rows] == ["Analog 0 (90%)", "Analog 1 (89%)", "Analog 2 (88%)"]
    assert rows[2][0].url == "https://pillintrip.com/ru/medicine/analog-2"


def test_no_analogs_for_aspirin():
    result = AnalogSearchResult.model_validate(
        {"medicine_info": {"medicine_name": "Aspirin"}, "medicine_analogs": []}
    )
    cb = _callback("search_analog:42")

    asyncio.run(handlers.handle_search_analog_callback(cb, FakeApi(analogs=result), SETTINGS))

    cb.message.answer.assert_awaited_once_with('Мне не удалось найти аналоги для "Aspirin".')


def test_analogs_decode_error_uses_target_name():
    error = PillintripDecodeError("bad", medicine_info=MedicineInfo(medicine_name="Aspirin"))
    cb = _callback("search_analog:42")

    asyncio.run(handlers.handle_search_analog_callback(cb, FakeApi(error=error), SETTINGS))

    cb.message.answer.assert_awaited_once_with('Мне не удалось найти аналоги для "Aspirin".')


def test_analogs_transport_error_has_empty_name():
    cb = _callback("search_analog:42")
    api = FakeApi(error=PillintripTransportError("timeout"))

    asyncio.run(handlers.handle_search_analog_callback(cb, api, SETTINGS))

    cb.message.answer.assert_awaited_once_with('Мне не удалось найти аналоги для "".')


def test_analogs_bad_payload_skips_api():
    cb = _callback("search_analog:abc")
    api = FakeApi()

    asyncio.run(handlers.handle_search_analog_callback(cb, api, SETTINGS))

    assert api.medicine_ids == []
    cb.answer.assert_awaited_once()
    cb.message.answer.assert_awaited_once_with('Мне не удалось найти аналоги для "".')


def test_analog_name_is_html_escaped():
    result = AnalogSearchResult(medicine_info=MedicineInfo(medicine_name="A<b>&C"))
    cb = _callback("search_analog:1")

    asyncio.run(handlers.handle_search_analog_callback(cb, FakeApi(analogs=result), SETTINGS))

    cb.message.answer.assert_awaited_once_with('Мне не удалось найти аналоги для "A&lt;b&gt;&amp;C".')


def test_show_medicine_stub():
    cb = _callback("show_medicine:17")
    asyncio.run(handlers.handle_show_medicine_callback(cb))
    cb.answer.assert_awaited_once()
    cb.message.answer.assert_awaited_once_with("Тут инфа по ценам для MedicineId=17")


def test_build_dispatcher_injects_settings_and_api():
    api = FakeApi()
    dp = handlers.build_dispatcher(SETTINGS, api)
    assert dp["settings"] is SETTINGS
    assert dp["api"] is api


def test_main_exits_with_status_2_on_config_error():
    with patch.object(handlers, "load_settings", side_effect=ConfigError("Не указан ключ API")), \
            patch.object(handlers, "Bot") as bot_cls:
        with pytest.raises(SystemExit) as exc_info:
            handlers.main()
    assert exc_info.value.code == 2
    bot_cls.assert_not_called()
