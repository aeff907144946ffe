from __future__ import annotations

from fastapi import Request

from commerce_analytics.container import Container


def get_container(request: Request) -> Container:
    return request.app.state.container
