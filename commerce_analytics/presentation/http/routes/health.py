from __future__ import annotations

from fastapi import APIRouter, Depends

from commerce_analytics.container import Container
from commerce_analytics.presentation.http.dependencies import get_container

router = APIRouter(tags=["health"])


@router.get("/health")
def health(container: Container = Depends(get_container)) -> dict:
    return {"status": "ok", "backend": container.settings.graph_backend}
