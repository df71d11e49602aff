from typing import Dict, Optional

import flet as ft

from src.client.controller import ApiKeyController
from src.client.views.grid import KeyGrid
from src.client.views.header import CategoryChips, HeaderBar, SearchField
from src.client.views.key_dialog import KeyDialog
from src.core.models import ApiKeyRecord


def KeysView(page: ft.Page, controller: ApiKeyController, title: str) -> ft.View:
    add_dialog: Dict[str, Optional[ft.AlertDialog]] = {"value": None}

    search_field = SearchField(controller)
    chips_holder = ft.Container(padding=ft.padding.symmetric(horizontal=10))
    grid_holder = ft.Container(padding=20)

    def show_edit_dialog(record: ApiKeyRecord):
        page.open(KeyDialog(page, controller, record))

    def on_add_dialog_closed():
        add_dialog["value"] = None
        if controller.is_add_dialog_open:
            controller.close_add_dialog()

    def sync_add_dialog():
        dlg = add_dialog["value"]
        if controller.is_add_dialog_open and dlg is None:
            dlg = KeyDialog(page, controller, on_closed=on_add_dialog_closed)
            add_dialog["value"] = dlg
            page.open(dlg)
        elif not controller.is_add_dialog_open and dlg is not None:
            add_dialog["value"] = None
            page.close(dlg)

    def render():
        chips_holder.content = CategoryChips(controller)
        grid_holder.content = KeyGrid(page, controller, controller.filtered_view(), on_edit=show_edit_dialog)
        if view.page:
            sync_add_dialog()
            page.update()

    view = ft.View(
        "/keys",
        controls=[
            ft.Container(search_field, padding=ft.padding.only(left=10, right=10, top=10)),
            chips_holder,
            ft.Column([grid_holder], scroll=ft.ScrollMode.AUTO, expand=True),
        ],
        appbar=HeaderBar(page, controller, title),
    )

    render()
    # 路由切换时由 main 调用, 取消订阅
    view.data = controller.subscribe(render)
    return view
