from datetime import datetime
from typing import Callable, Optional

import flet as ft

from src.client.controller import ApiKeyController, Notification
from src.client.forms import DraftForm
from src.core.models import CATEGORIES, CATEGORY_VALUES, ApiKeyRecord


def KeyDialog(
    page: ft.Page,
    controller: ApiKeyController,
    record: Optional[ApiKeyRecord] = None,
    on_closed: Optional[Callable[[], None]] = None,
) -> ft.AlertDialog:
    """新增/编辑 弹窗"""
    form = DraftForm(record)
    submit_label = "Save Changes" if form.is_edit else "Add API Key"

    name_tf = ft.TextField(label="Name *", hint_text="e.g., OpenAI API, Stripe Payment")
    description_tf = ft.TextField(
        label="Description",
        hint_text="Brief description of what this API key is used for...",
        multiline=True,
        min_lines=2,
        max_lines=3,
    )
    api_key_tf = ft.TextField(
        label="API Key *",
        hint_text="Paste your API key here...",
        multiline=True,
        min_lines=2,
        max_lines=3,
        text_style=ft.TextStyle(font_family="monospace"),
    )
    category_options = [ft.dropdown.Option(key=value, text=label) for value, label in CATEGORIES]
    if form.category not in CATEGORY_VALUES:
        # 保留旧数据中的未知分类
        category_options.append(ft.dropdown.Option(key=form.category, text=form.category))
    category_dd = ft.Dropdown(label="Category", options=category_options)
    service_url_tf = ft.TextField(label="Service URL", hint_text="https://api.example.com")
    expires_tf = ft.TextField(label="Expiration Date", hint_text="YYYY-MM-DD", expand=True)
    tag_tf = ft.TextField(hint_text="Add a tag...", expand=True, on_submit=lambda e: add_tag(e))
    tags_row = ft.Row(wrap=True, spacing=4)

    def pick_date(e):
        if e.control.value:
            expires_tf.value = e.control.value.strftime("%Y-%m-%d")
            expires_tf.error_text = None
            expires_tf.update()

    date_picker = ft.DatePicker(first_date=datetime(2000, 1, 1), on_change=pick_date)

    def render_tags():
        tags_row.controls = [
            ft.Chip(label=ft.Text(tag, size=12), on_delete=lambda e, t=tag: remove_tag(t))
            for tag in form.tags
        ]

    def load_fields():
        name_tf.value = form.name
        description_tf.value = form.description
        api_key_tf.value = form.api_key
        category_dd.value = form.category
        service_url_tf.value = form.service_url
        expires_tf.value = form.expires_at
        tag_tf.value = form.new_tag
        for tf in (name_tf, api_key_tf, expires_tf):
            tf.error_text = None
        render_tags()

    def read_fields():
        form.name = name_tf.value or ""
        form.description = description_tf.value or ""
        form.api_key = api_key_tf.value or ""
        form.category = category_dd.value or form.category
        form.service_url = service_url_tf.value or ""
        form.expires_at = expires_tf.value or ""
        form.new_tag = tag_tf.value or ""

    def add_tag(e):
        form.new_tag = tag_tf.value or ""
        if form.add_tag():
            tag_tf.value = ""
            render_tags()
            dlg.update()

    def remove_tag(tag: str):
        form.remove_tag(tag)
        render_tags()
        dlg.update()

    def set_busy(busy: bool):
        for control in controls:
            control.disabled = busy
        submit_btn.text = ("Saving..." if form.is_edit else "Adding...") if busy else submit_label

    def close(e=None):
        page.close(dlg)
        if on_closed:
            on_closed()

    def submit(e):
        read_fields()
        errors = form.errors()
        name_tf.error_text = errors.get("name")
        api_key_tf.error_text = errors.get("api_key")
        expires_tf.error_text = errors.get("expires_at")
        if errors:
            dlg.update()
            return

        set_busy(True)
        dlg.update()
        ok = False
        try:
            if form.is_edit:
                update = form.to_update()
                # 没有修改则直接关闭
                if update.model_fields_set:
                    ok = controller.update_record(form.original.id, update)
                else:
                    ok = True
            else:
                ok = controller.add_record(form.to_draft())
        except ValueError as ex:
            controller.notify(Notification("Error", f"Invalid API key details: {ex}", is_error=True))
        finally:
            set_busy(False)

        if ok:
            if not form.is_edit:
                form.reset()
                load_fields()
            close()
        else:
            dlg.update()

    submit_btn = ft.ElevatedButton(submit_label, on_click=submit)
    cancel_btn = ft.TextButton("Cancel", on_click=close)
    controls = [
        name_tf, description_tf, api_key_tf, category_dd, service_url_tf, expires_tf, tag_tf,
        submit_btn, cancel_btn,
    ]

    load_fields()

    dlg = ft.AlertDialog(
        title=ft.Text("Edit API Key" if form.is_edit else "Add New API Key"),
        content=ft.Column(
            [
                name_tf,
                description_tf,
                api_key_tf,
                category_dd,
                service_url_tf,
                ft.Row(
                    [
                        expires_tf,
                        ft.IconButton(icon="calendar_month", tooltip="Pick a date", on_click=lambda e: page.open(date_picker)),
                    ]
                ),
                ft.Text("Tags", weight=ft.FontWeight.W_500),
                tags_row,
                ft.Row([tag_tf, ft.IconButton(icon="add", tooltip="Add tag", on_click=add_tag)]),
            ],
            tight=True,
            width=450,
            scroll=ft.ScrollMode.AUTO,
        ),
        actions=[cancel_btn, submit_btn],
        on_dismiss=lambda e: on_closed() if on_closed else None,
    )
    return dlg
