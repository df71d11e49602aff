from typing import Callable

import flet as ft

from src.client.controller import ApiKeyController, Notification
from src.core.display import category_colors, expiry_status, format_last_used, mask_api_key, service_hostname
from src.core.models import ApiKeyRecord


def KeyCard(
    page: ft.Page,
    controller: ApiKeyController,
    record: ApiKeyRecord,
    on_edit: Callable[[ApiKeyRecord], None],
) -> ft.Card:
    is_visible = {"value": False}

    key_text = ft.Text(mask_api_key(record.api_key), font_family="monospace", size=13, selectable=True)

    def toggle_visible(e):
        is_visible["value"] = not is_visible["value"]
        key_text.value = record.api_key if is_visible["value"] else mask_api_key(record.api_key)
        eye_btn.icon = "visibility_off" if is_visible["value"] else "visibility"
        eye_btn.tooltip = "Hide key" if is_visible["value"] else "Show key"
        key_text.update()
        eye_btn.update()

    def copy_to_clipboard(e):
        try:
            page.set_clipboard(record.api_key)
        except Exception:
            controller.notify(Notification("Error", "Failed to copy to clipboard", is_error=True))
            return
        controller.notify(Notification("Copied!", "API key copied to clipboard"))

    eye_btn = ft.IconButton(icon="visibility", icon_size=16, tooltip="Show key", on_click=toggle_visible)

    menu = ft.PopupMenuButton(
        icon="more_vert",
        items=[
            ft.PopupMenuItem(
                text="Deactivate" if record.is_active else "Activate",
                icon="toggle_off" if record.is_active else "toggle_on",
                on_click=lambda e: controller.toggle_active(record),
            ),
            ft.PopupMenuItem(text="Edit", icon="edit", on_click=lambda e: on_edit(record)),
            ft.PopupMenuItem(text="Delete", icon="delete", on_click=lambda e: controller.delete_record(record.id)),
        ],
    )

    badge_bg, badge_fg = category_colors(record.category)
    header = ft.Row(
        [
            ft.Column(
                [
                    ft.Row(
                        [
                            ft.Text(record.name, weight=ft.FontWeight.BOLD, size=16, no_wrap=True),
                            ft.Container(
                                content=ft.Text(record.category, size=11, color=badge_fg),
                                bgcolor=badge_bg,
                                padding=ft.padding.symmetric(horizontal=6, vertical=1),
                                border_radius=4,
                            ),
                        ],
                        spacing=8,
                    ),
                    ft.Text(record.description or "", size=12, color="grey", max_lines=2, visible=bool(record.description)),
                ],
                expand=True,
                spacing=4,
            ),
            menu,
        ],
        vertical_alignment=ft.CrossAxisAlignment.START,
    )

    body = [
        header,
        ft.Row(
            [
                ft.Text("API Key", size=13, weight=ft.FontWeight.W_500),
                ft.Row(
                    [eye_btn, ft.IconButton(icon="copy", icon_size=16, tooltip="Copy to clipboard", on_click=copy_to_clipboard)],
                    spacing=0,
                ),
            ],
            alignment=ft.MainAxisAlignment.SPACE_BETWEEN,
        ),
        ft.Container(key_text, bgcolor="grey100", border_radius=6, padding=8),
    ]

    if record.service_url:
        url = record.service_url
        body.append(
            ft.Row(
                [
                    ft.Text("Service URL", size=13, color="grey"),
                    ft.TextButton(service_hostname(url), icon="open_in_new", on_click=lambda e: page.launch_url(url)),
                ],
                alignment=ft.MainAxisAlignment.SPACE_BETWEEN,
            )
        )

    status_row = [
        ft.Row(
            [
                ft.Container(width=8, height=8, border_radius=4, bgcolor="green500" if record.is_active else "grey400"),
                ft.Text("Active" if record.is_active else "Inactive", size=13, color="grey"),
            ],
            spacing=6,
        )
    ]
    now = controller.clock()
    expiry = expiry_status(record.expires_at, now)
    if expiry:
        status_row.append(
            ft.Row(
                [ft.Icon(name="calendar_today", size=12, color=expiry.color), ft.Text(expiry.text, size=12, color=expiry.color)],
                spacing=4,
            )
        )
    body.append(ft.Row(status_row, alignment=ft.MainAxisAlignment.SPACE_BETWEEN))

    if record.last_used_at:
        body.append(
            ft.Row(
                [
                    ft.Text("Last used", size=13, color="grey"),
                    ft.Text(format_last_used(record.last_used_at, now), size=12, color="grey"),
                ],
                alignment=ft.MainAxisAlignment.SPACE_BETWEEN,
            )
        )

    if record.tags:
        body.append(
            ft.Row(
                [
                    ft.Container(
                        content=ft.Text(tag, size=11),
                        bgcolor="grey200",
                        padding=ft.padding.symmetric(horizontal=6, vertical=1),
                        border_radius=4,
                    )
                    for tag in record.tags
                ],
                wrap=True,
                spacing=4,
            )
        )

    return ft.Card(
        content=ft.Container(ft.Column(body, spacing=10), padding=15),
        elevation=1,
    )
