import logging

import flet as ft

from src.client.backend import BackendClient
from src.client.config import Settings, get_settings
from src.client.controller import ApiKeyController, Notification
from src.client.database import LocalBackend
from src.client.http_backend import HttpBackend
from src.client.views.keys import KeysView
from src.client.views.login import LoginView
from src.core.models import AuthUser

logger = logging.getLogger(__name__)


def setup_logging(level: str):
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def create_backend(settings: Settings) -> BackendClient:
    if settings.BACKEND == "http":
        logger.info("Using remote backend at %s", settings.BACKEND_URL)
        return HttpBackend(settings.BACKEND_URL, timeout=settings.REQUEST_TIMEOUT)

    user = AuthUser(
        id=settings.LOCAL_USER_ID,
        email=settings.LOCAL_USER_EMAIL,
        display_name=settings.LOCAL_USER_NAME,
    )
    return LocalBackend(settings.database_url, user)


def main(page: ft.Page):
    settings = get_settings()
    page.title = settings.APP_TITLE
    page.theme_mode = ft.ThemeMode.LIGHT

    def show_notification(n: Notification):
        page.open(
            ft.SnackBar(
                ft.Text(f"{n.title}: {n.message}", color="white" if n.is_error else None),
                bgcolor="red700" if n.is_error else None,
                show_close_icon=True,
            )
        )

    controller = ApiKeyController(create_backend(settings), settings.COLLECTION, notify=show_notification)

    def target_route() -> str:
        return "/keys" if controller.user and not controller.is_loading else "/login"

    def dispose_views():
        for view in page.views:
            if callable(view.data):
                view.data()

    def route_change(route):
        logger.debug("Route: %s", page.route)
        expected = target_route()
        if page.route != expected:
            page.go(expected)
            return

        page.overlay.clear()
        dispose_views()
        page.views.clear()
        if page.route == "/keys":
            page.views.append(KeysView(page, controller, settings.APP_TITLE))
        else:
            page.views.append(LoginView(page, controller, settings.APP_TITLE))
        page.update()

    def follow_auth():
        if page.route != target_route():
            page.go(target_route())

    def on_disconnect(e):
        dispose_views()
        controller.detach()

    page.on_route_change = route_change
    page.on_disconnect = on_disconnect

    controller.subscribe(follow_auth)
    controller.attach()
    page.go(target_route())


def run():
    setup_logging(get_settings().LOG_LEVEL)
    ft.app(target=main)


if __name__ == "__main__":
    run()
