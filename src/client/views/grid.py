from typing import Callable, List

import flet as ft

from src.client.controller import ApiKeyController
from src.client.views.key_card import KeyCard
from src.core.display import GridStats, compute_stats
from src.core.models import ApiKeyRecord

CARD_COLUMNS = {"sm": 12, "md": 6, "lg": 4}
STAT_COLUMNS = {"sm": 12, "md": 3}


def StatTile(label: str, value: int, icon: str, color: str) -> ft.Container:
    return ft.Container(
        content=ft.Row(
            [
                ft.Column(
                    [
                        ft.Text(label, size=13, color="grey"),
                        ft.Text(str(value), size=24, weight=ft.FontWeight.BOLD),
                    ],
                    spacing=2,
                ),
                ft.Icon(name=icon, color=color),
            ],
            alignment=ft.MainAxisAlignment.SPACE_BETWEEN,
        ),
        padding=15,
        border=ft.border.all(1, "grey300"),
        border_radius=10,
        bgcolor="white",
        col=STAT_COLUMNS,
    )


def StatsRow(stats: GridStats) -> ft.ResponsiveRow:
    return ft.ResponsiveRow(
        [
            StatTile("Total Keys", stats.total, "key", "blue"),
            StatTile("Active Keys", stats.active, "check_circle", "green"),
            StatTile("Expiring Soon", stats.expiring_soon, "warning_amber", "amber"),
            StatTile("Categories", stats.categories, "label", "blue"),
        ]
    )


def EmptyState(on_add: Callable) -> ft.Container:
    def feature(icon: str, color: str, title: str, text: str) -> ft.Container:
        return ft.Container(
            content=ft.Column(
                [
                    ft.Icon(name=icon, color=color, size=30),
                    ft.Text(title, weight=ft.FontWeight.BOLD),
                    ft.Text(text, size=12, color="grey", text_align=ft.TextAlign.CENTER),
                ],
                horizontal_alignment=ft.CrossAxisAlignment.CENTER,
            ),
            padding=20,
            border=ft.border.all(1, "grey300"),
            border_radius=10,
            col={"sm": 12, "md": 4},
        )

    return ft.Container(
        content=ft.Column(
            [
                ft.Icon(name="vpn_key", size=80, color="blue"),
                ft.Text("No API keys found", size=20, weight=ft.FontWeight.BOLD),
                ft.Text(
                    "Nothing matches the current view. Add an API key or change the search and category filter.",
                    color="grey",
                    text_align=ft.TextAlign.CENTER,
                ),
                ft.Container(height=10),
                ft.ElevatedButton("Add Your First API Key", icon="add", on_click=on_add),
                ft.Container(height=30),
                ft.ResponsiveRow(
                    [
                        feature("storage", "green", "Your Own Backend", "Keys are kept in the backend you sign in to, scoped to your account."),
                        feature("label", "blue", "Easy Organization", "Organize your keys by categories, add descriptions, and tag them for quick access."),
                        feature("event", "purple", "Expiry Tracking", "Set expiration dates and spot keys that are about to expire."),
                    ],
                ),
            ],
            horizontal_alignment=ft.CrossAxisAlignment.CENTER,
        ),
        padding=40,
        alignment=ft.alignment.center,
    )


def KeyGrid(
    page: ft.Page,
    controller: ApiKeyController,
    records: List[ApiKeyRecord],
    on_edit: Callable[[ApiKeyRecord], None],
) -> ft.Control:
    if not records:
        return EmptyState(on_add=lambda e: controller.open_add_dialog())

    cards = []
    for record in records:
        card = KeyCard(page, controller, record, on_edit)
        cards.append(ft.Container(card, col=CARD_COLUMNS))

    return ft.Column(
        [
            StatsRow(compute_stats(records, controller.clock())),
            ft.ResponsiveRow(cards),
        ],
        spacing=20,
    )
