"""Demo bot — one command per widget.

Registers the handlers on a PTB Application:
  - /start: main menu (reply keyboard) linking to everything below
  - /survey: questionnaire with text, radio and checkbox steps
  - /products: data table over a small product catalogue, with filters
  - /profile: edit form over the user's Profile dataclass
  - /settings: inline sub-menu storing a language in per-chat state
  - /tour: slider
  - /help: dialog
  - /list: paginator

Widget callbacks are routed by UIBot in UI_HANDLER_GROUP; questionnaire
text answers by the Manager's handler in the same group.

Key function: create_bot().
"""

from __future__ import annotations

import logging
import math
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

from telegram import BotCommand, MaybeInaccessibleMessage, Update
from telegram.ext import Application, CommandHandler, ContextTypes

from ..button import Button, quick_choices, quick_paired_choices
from ..datatable import DataResult, DataTableBuilder
from ..dialog import Dialog, DialogButton, Node
from ..editform import EditForm
from ..errors import UIError
from ..helpers import truncate
from ..menu import Menu
from ..message_sender import send_markdown
from ..paginator import Paginator
from ..questionnaire import Manager, Questionnaire
from ..slider import Slide, Slider
from ..submenu import SubMenu
from ..uibot import UI_HANDLER_GROUP, UIBot, UIContext
from .config import config

logger = logging.getLogger(__name__)

BOT_COMMANDS = [
    BotCommand("start", "Main menu"),
    BotCommand("survey", "Take a short survey"),
    BotCommand("products", "Browse the catalogue"),
    BotCommand("profile", "Edit your profile"),
    BotCommand("settings", "Choose a language"),
    BotCommand("tour", "Feature tour"),
    BotCommand("help", "Help"),
    BotCommand("list", "A long list"),
]

LANGUAGE_KEY = "language"


@dataclass
class Product:
    name: str
    category: str
    price: float


PRODUCTS = [
    Product("Espresso", "coffee", 2.5),
    Product("Americano", "coffee", 3.0),
    Product("Cappuccino", "coffee", 3.8),
    Product("Flat white", "coffee", 3.9),
    Product("Latte", "coffee", 4.0),
    Product("Green tea", "tea", 2.8),
    Product("Earl Grey", "tea", 2.8),
    Product("Chai latte", "tea", 4.2),
    Product("Croissant", "bakery", 2.2),
    Product("Cinnamon roll", "bakery", 3.1),
    Product("Banana bread", "bakery", 3.3),
    Product("Orange juice", "drinks", 3.5),
    Product("Sparkling water", "drinks", 1.8),
]


@dataclass
class Profile:
    id: int = field(default=0, metadata={"tg": "noedit"})
    name: str = field(default="", metadata={"tg": "label: Name"})
    age: int = 0
    city: str = ""
    newsletter: bool = False


def validate_name(text: str) -> None:
    if len(text.strip()) < 2:
        raise ValueError("Name must be at least 2 characters")


def filter_products(products: list[Product], filters: dict[str, Any]) -> list[Product]:
    """Case-insensitive substring match on every active filter."""
    result = products
    for key, value in filters.items():
        needle = str(value).lower()
        result = [p for p in result if needle in str(getattr(p, key, "")).lower()]
    return result


ChatAction = Callable[[int, int | None], Awaitable[Any]]


def _command(action: ChatAction) -> Callable[[Update, ContextTypes.DEFAULT_TYPE], Awaitable[None]]:
    """Adapt a (chat_id, user_id) action to a PTB command callback."""

    async def _handler(update: Update, _context: ContextTypes.DEFAULT_TYPE) -> None:
        chat = update.effective_chat
        if chat is None:
            return
        user = update.effective_user
        await action(chat.id, user.id if user else None)

    return _handler


def _menu_route(action: ChatAction) -> Callable[[UIContext], Awaitable[None]]:
    async def _route(ctx: UIContext) -> None:
        if ctx.chat_id is None:
            return
        await action(ctx.chat_id, ctx.user_id)

    return _route


class Demo:
    """Holds the shared UIBot and Manager and shows one widget per action."""

    def __init__(self, ui: UIBot, manager: Manager, items_per_page: int) -> None:
        self.ui = ui
        self.manager = manager
        self.items_per_page = items_per_page
        self.profiles: dict[int, Profile] = {}
        self.menu: Menu | None = None

    # --- Menu ---

    async def show_menu(self, chat_id: int, _user_id: int | None = None) -> None:
        if self.menu is None:
            self.menu = Menu.from_items(self.ui, "Choose a demo:", [])
            self.menu.row().add("📝 Survey", _menu_route(self.show_survey))
            self.menu.add("🛒 Products", _menu_route(self.show_products))
            self.menu.row().add("👤 Profile", _menu_route(self.show_profile))
            self.menu.add("⚙️ Settings", _menu_route(self.show_settings))
            self.menu.row().add("🖼 Tour", _menu_route(self.show_tour))
            self.menu.add("❓ Help", _menu_route(self.show_help))
            self.menu.add("📜 List", _menu_route(self.show_list))
            self.menu.row().add("✖️ Hide menu", _menu_route(self.hide_menu))
        await self.menu.show(chat_id)

    async def hide_menu(self, chat_id: int, _user_id: int | None = None) -> None:
        if self.menu is None:
            return
        await self.menu.hide(chat_id, "Menu hidden. Send /start to bring it back.")
        self.menu = None

    # --- Questionnaire ---

    async def show_survey(self, chat_id: int, _user_id: int | None = None) -> None:
        async def on_done(bot: UIBot, done_chat_id: Any, answers: dict[str, Any]) -> None:
            interests = ", ".join(answers["interests"]) or "nothing in particular"
            await send_markdown(
                bot.bot,
                done_chat_id,
                f"Thanks, *{answers['name']}*!\n"
                f"Age group: {answers['age']}\nInterested in: {interests}",
            )

        def on_cancel() -> None:
            logger.info("Survey cancelled in chat %s", chat_id)

        q = (
            Questionnaire(chat_id, self.manager)
            .add_question("name", "What is your name?", validator=validate_name)
            .add_question("age", "How old are you?", quick_choices("<18", "18-30", "30-50", "50+"))
            .add_multiple_answer_question(
                "interests",
                "What are you interested in?",
                quick_paired_choices("Coffee", "Tea", "Bakery", "Drinks"),
            )
            .set_on_done_handler(on_done)
            .set_on_cancel_handler(on_cancel)
        )
        await q.show(self.ui)

    # --- DataTable ---

    async def load_products(
        self, _bot: UIBot, page_size: int, page_num: int, filters: dict[str, Any]
    ) -> DataResult:
        products = filter_products(PRODUCTS, filters)
        if not products:
            return DataResult("Nothing matches the current filters.")
        pages_count = math.ceil(len(products) / page_size)
        start = (page_num - 1) * page_size
        page = products[start : start + page_size]
        text = "\n".join(f"*{p.name}* ({p.category}) ${p.price:.2f}" for p in page)
        rows = [
            [Button(truncate(f"🛒 {p.name}", 32), p.name, self._on_product)] for p in page
        ]
        return DataResult(text, rows, pages_count)

    async def _on_product(
        self, ctx: UIContext, _message: MaybeInaccessibleMessage | None, name: str
    ) -> None:
        if ctx.chat_id is not None:
            await ctx.bot.send_message(ctx.chat_id, f"{name} added to your cart.")

    async def show_products(self, chat_id: int, _user_id: int | None = None) -> None:
        table = (
            DataTableBuilder(self.ui)
            .with_items_per_page(self.items_per_page)
            .with_data_handler(self.load_products)
            .with_filtering(self.manager, ["category", "name"])
            .with_on_cancel_handler(lambda: logger.debug("Products table closed in %s", chat_id))
            .build()
        )
        await table.show(chat_id)

    # --- EditForm ---

    async def show_profile(self, chat_id: int, user_id: int | None = None) -> None:
        key = user_id or chat_id
        profile = self.profiles.get(key) or Profile(id=key)

        async def on_done(data: dict[str, Any]) -> None:
            if not 0 <= data["age"] <= 150:
                raise UIError("Age must be between 0 and 150")
            self.profiles[key] = form.result()
            await self.ui.send_message(chat_id, "Profile saved.")

        form = EditForm(
            self.ui,
            "Your profile. Tap a field to change it.",
            profile,
            on_done,
            chat_id=chat_id,
            manager=self.manager,
            choices={"city": quick_paired_choices("London", "Berlin", "Paris", "Madrid")},
        )
        form.set_formatter("newsletter", format_fn=lambda v: "yes" if v == "True" else "no")
        form.set_formatter("name", transform_fn=str.strip)
        await form.show()

    # --- SubMenu ---

    async def show_settings(self, chat_id: int, _user_id: int | None = None) -> None:
        async def choose(ctx: UIContext, _message: MaybeInaccessibleMessage | None, lang: str) -> None:
            self.ui.set_context_data(chat_id, LANGUAGE_KEY, lang)
            await ctx.bot.send_message(chat_id, f"Language set to {lang}.")

        current = self.ui.get_context_data(chat_id, LANGUAGE_KEY) or "not set"
        menu = SubMenu(self.ui, f"Language (current: {current})")
        menu.add("English", "en", choose).add("Deutsch", "de", choose)
        menu.row().add("Français", "fr", choose).add("Español", "es", choose)
        menu.add_cancel(lambda: logger.debug("Settings closed in %s", chat_id))
        await menu.show(chat_id)

    # --- Slider ---

    async def show_tour(self, chat_id: int, _user_id: int | None = None) -> None:
        slides = [
            Slide("*Menus*\nPersistent reply keyboards routed by text."),
            Slide("*Questionnaires*\nText, radio and checkbox steps with editing."),
            Slide("*Data tables*\nPaged, filterable lists with row actions."),
            Slide("*Edit forms*\nEdit a dataclass field by field."),
        ]

        async def on_select(ctx: UIContext, index: int) -> None:
            await ctx.bot.send_message(chat_id, f"You picked slide {index + 1}.")

        await Slider(self.ui, slides, on_select=on_select).show(chat_id)

    # --- Dialog ---

    async def show_help(self, chat_id: int, _user_id: int | None = None) -> None:
        nodes = [
            Node(
                "main",
                "*Help*\nPick a topic.",
                [
                    [DialogButton("Widgets", "widgets"), DialogButton("About", "about")],
                    [DialogButton("Bot API docs", url="https://core.telegram.org/bots/api")],
                ],
            ),
            Node(
                "widgets",
                "Try /survey, /products, /profile, /settings, /tour and /list.",
                [[DialogButton("⬅️ Back", "main")]],
            ),
            Node(
                "about",
                "A demo of the tgui widget toolkit.",
                [[DialogButton("⬅️ Back", "main")]],
            ),
        ]
        await Dialog(self.ui, nodes, close_text="❌ Close").show(chat_id)

    # --- Paginator ---

    async def show_list(self, chat_id: int, _user_id: int | None = None) -> None:
        items = [f"*{i}.* {p.name} ({p.category})" for i, p in enumerate(PRODUCTS, 1)]
        await Paginator(self.ui, items, per_page=self.items_per_page, separator="\n").show(
            chat_id
        )


async def error_handler(update: object, context: ContextTypes.DEFAULT_TYPE) -> None:
    logger.error("Update %s caused an error", update, exc_info=context.error)


async def post_init(application: Application) -> None:
    await application.bot.set_my_commands(BOT_COMMANDS)


def register_handlers(application: Application, demo: Demo) -> None:
    application.add_handler(demo.manager.handler(), group=UI_HANDLER_GROUP)
    for name, action in (
        ("start", demo.show_menu),
        ("survey", demo.show_survey),
        ("products", demo.show_products),
        ("profile", demo.show_profile),
        ("settings", demo.show_settings),
        ("tour", demo.show_tour),
        ("help", demo.show_help),
        ("list", demo.show_list),
    ):
        application.add_handler(CommandHandler(name, _command(action)))
    application.add_error_handler(error_handler)


def create_bot() -> Application:
    application = (
        Application.builder().token(config.telegram_bot_token).post_init(post_init).build()
    )
    demo = Demo(UIBot(application), Manager(), config.items_per_page)
    register_handlers(application, demo)
    return application
