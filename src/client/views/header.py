import flet as ft

from src.client.controller import ApiKeyController
from src.core.display import user_initials
from src.core.models import ALL_CATEGORIES, CATEGORIES

FILTER_CHOICES = [(ALL_CATEGORIES, "All Keys")] + CATEGORIES


def HeaderBar(page: ft.Page, controller: ApiKeyController, title: str) -> ft.AppBar:
    user = controller.user

    def logout(e):
        controller.logout()

    user_menu = ft.PopupMenuButton(
        content=ft.CircleAvatar(
            content=ft.Text(user_initials(user), size=13, weight=ft.FontWeight.BOLD),
            radius=16,
            bgcolor="blue50",
            color="blue",
        ),
        tooltip="Account",
        items=[
            ft.PopupMenuItem(
                content=ft.Column(
                    [
                        ft.Text((user.display_name if user else None) or "User", weight=ft.FontWeight.BOLD),
                        ft.Text((user.email if user else None) or "", size=12, color="grey"),
                    ],
                    spacing=2,
                    tight=True,
                ),
                disabled=True,
            ),
            ft.PopupMenuItem(),
            ft.PopupMenuItem(text="Log out", icon="logout", on_click=logout),
        ],
    )

    return ft.AppBar(
        leading=ft.Icon(name="key", color="blue"),
        title=ft.Text(title, weight=ft.FontWeight.BOLD),
        bgcolor="surfaceVariant",
        actions=[
            ft.ElevatedButton("Add Key", icon="add", on_click=lambda e: controller.open_add_dialog()),
            ft.Container(user_menu, padding=ft.padding.symmetric(horizontal=10)),
        ],
    )


def SearchField(controller: ApiKeyController) -> ft.TextField:
    return ft.TextField(
        prefix_icon="search",
        hint_text="Search API keys, descriptions, or tags...",
        value=controller.search_query,
        expand=True,
        on_change=lambda e: controller.set_search_query(e.control.value),
    )


def CategoryChips(controller: ApiKeyController) -> ft.Row:
    chips = []
    for value, label in FILTER_CHOICES:
        chips.append(
            ft.Chip(
                label=ft.Text(label),
                selected=controller.selected_category == value,
                show_checkmark=False,
                selected_color="blue100",
                on_select=lambda e, v=value: controller.set_category(v),
            )
        )
    return ft.Row(
        [ft.Icon(name="filter_list", size=18, color="grey")] + chips,
        scroll=ft.ScrollMode.AUTO,
        spacing=6,
    )
