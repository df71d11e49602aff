import logging

import flet as ft

from src.client.backend import BackendError
from src.client.controller import ApiKeyController

logger = logging.getLogger(__name__)


def LoginView(page: ft.Page, controller: ApiKeyController, title: str) -> ft.View:
    needs_credentials = controller.backend.auth.requires_credentials

    email_field = ft.TextField(
        label="Email",
        width=300,
        visible=needs_credentials,
        on_submit=lambda e: handle_login(e),
    )
    pass_field = ft.TextField(
        label="Password",
        password=True,
        can_reveal_password=True,
        width=300,
        visible=needs_credentials,
        on_submit=lambda e: handle_login(e),
    )
    error_text = ft.Text("", color="red")

    login_button = ft.ElevatedButton(
        text="Sign In to Continue",
        width=300,
        height=50,
        on_click=lambda e: handle_login(e),
    )
    loading_ring = ft.ProgressRing(width=32, height=32)
    loading_text = ft.Text("Loading...", color="grey")

    def handle_login(e):
        if needs_credentials and (not email_field.value or not pass_field.value):
            error_text.value = "Email and password are required"
            error_text.update()
            return

        error_text.value = ""
        login_button.disabled = True
        page.update()
        try:
            controller.login(email_field.value, pass_field.value)
        except BackendError as ex:
            logger.warning("Sign in failed: %s", ex)
            error_text.value = "Sign in failed"
            page.open(ft.SnackBar(ft.Text(f"Sign in failed: {ex}"), show_close_icon=True))
        finally:
            login_button.disabled = False
            if view.page:
                pass_field.value = ""
                page.update()

    def render():
        loading = controller.is_loading
        loading_ring.visible = loading
        loading_text.visible = loading
        sign_in.visible = not loading
        if view.page:
            page.update()

    sign_in = ft.Column(
        [
            ft.Icon(name="vpn_key", size=80, color="blue"),
            ft.Container(height=20),
            ft.Text(title, size=30, weight=ft.FontWeight.BOLD),
            ft.Text(
                "Keep track of your API keys: categories, tags, expiry dates and quick copy.",
                color="grey",
                size=14,
                text_align=ft.TextAlign.CENTER,
            ),
            ft.Container(height=30),
            email_field,
            pass_field,
            error_text,
            ft.Container(height=10),
            login_button,
        ],
        horizontal_alignment=ft.CrossAxisAlignment.CENTER,
    )

    view = ft.View(
        "/login",
        controls=[
            ft.Container(
                content=ft.Column(
                    [loading_ring, loading_text, sign_in],
                    horizontal_alignment=ft.CrossAxisAlignment.CENTER,
                ),
                alignment=ft.alignment.center,
                expand=True,
            )
        ],
    )

    render()
    view.data = controller.subscribe(render)
    return view
