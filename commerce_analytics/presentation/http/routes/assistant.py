from __future__ import annotations

from fastapi import APIRouter, Body, Depends
from fastapi.encoders import jsonable_encoder

from commerce_analytics.container import Container
from commerce_analytics.presentation.http.dependencies import get_container

router = APIRouter(prefix="/admin/analytics-chat", tags=["analytics-chat"])


@router.get("/tools")
def list_tools(container: Container = Depends(get_container)):
    return {
        "tools": container.tools.list_tools(),
        "function_tools": container.tools.to_function_tools(),
    }


@router.post("/tools/{name}")
def invoke_tool(name: str, arguments: dict | None = Body(default=None), container: Container = Depends(get_container)):
    # unknown tools and tool failures travel inside the result body
    result = container.tools.invoke(name, arguments)
    return jsonable_encoder(result.to_dict())
