"""Route table and navigation guard.

The guard takes a target path plus the auth session and decides the page
title and whether the navigation must be redirected to the login entry.
Rendering and history handling belong to the UI layer.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from core.session import ADMIN_PREFIX, LOGIN_PATH, AuthSession

DEFAULT_TITLE = "必应每日一图"

ROUTES: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"^/$"), DEFAULT_TITLE),
    (re.compile(r"^/image/[^/]+/?$"), "图片详情"),
    (re.compile(r"^/admin/login/?$"), "管理员登录"),
    (re.compile(r"^/admin(/.*)?$"), "管理后台"),
)


@dataclass(frozen=True)
class NavigationDecision:
    title: str
    redirect: str | None = None


def route_title(path: str) -> str:
    for pattern, title in ROUTES:
        if pattern.match(path):
            return title
    return DEFAULT_TITLE


def requires_auth(path: str) -> bool:
    return path.startswith(ADMIN_PREFIX) and not path.startswith(LOGIN_PATH)


def guard(path: str, session: AuthSession) -> NavigationDecision:
    if requires_auth(path) and not session.is_valid():
        return NavigationDecision(title=route_title(LOGIN_PATH), redirect=LOGIN_PATH)
    return NavigationDecision(title=route_title(path))


@dataclass
class HistoryNavigator:
    """In-process navigator: tracks the current path and every redirect issued."""

    current_path: str = "/"
    redirects: list[str] = field(default_factory=list)

    def redirect(self, path: str) -> None:
        self.redirects.append(path)
        self.current_path = path

    def navigate(self, path: str, session: AuthSession) -> NavigationDecision:
        decision = guard(path, session)
        self.current_path = decision.redirect or path
        return decision
