"""
Subscription tool access API.

GET  /api/subscription/tools?action=info|available|check
POST /api/subscription/tools  {"action": "check"|"batch_check"|"subscription_info", ...}

Successful responses are {"success": true, "action": ..., "data": ...}.
Errors use the standard envelope (see hermes.core.errors); a failed
subscription/usage lookup is a retryable 503, never a denial.
"""

import json
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query, Request
from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError
from starlette.concurrency import run_in_threadpool

from hermes.core.auth import get_current_user_id
from hermes.core.errors import ValidationError
from hermes.core.logging import log_event
from hermes.features.tool_access.service import ToolAccessController, get_tool_access_controller

router = APIRouter(prefix="/api/subscription", tags=["subscription"])


class ToolCheckRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    tool_name: str = Field(..., alias="toolName", min_length=1)
    parameters: Optional[Dict[str, Any]] = None


class BatchCheckRequest(BaseModel):
    tools: List[ToolCheckRequest]


class SubscriptionInfoRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    include_usage: bool = Field(True, alias="includeUsage")
    include_available_tools: bool = Field(True, alias="includeAvailableTools")


def _parse(model, payload: Any):
    try:
        return model.model_validate(payload)
    except PydanticValidationError as e:
        raise ValidationError(f"Invalid request parameters: {e.errors()[0]['msg']}") from e


def _respond(action: str, data: Any, user_id: str) -> Dict[str, Any]:
    log_event("info", "subscription_tools.request", user_id=user_id, event_type=action)
    return {"success": True, "action": action, "data": data}


@router.get("/tools")
def get_subscription_tools(
    action: str = Query("info"),
    tool_name: Optional[str] = Query(None, alias="toolName"),
    parameters: Optional[str] = Query(None),
    user_id: str = Depends(get_current_user_id),
    controller: ToolAccessController = Depends(get_tool_access_controller),
):
    """Usage stats (info), tool availability (available) or a single access check (check)."""
    if action == "info":
        data = controller.get_subscription_usage_stats(user_id).to_payload()
    elif action == "available":
        data = controller.get_available_tools(user_id).to_payload()
    elif action == "check":
        if not tool_name:
            raise ValidationError("toolName parameter is required for access check")
        params = None
        if parameters:
            try:
                params = json.loads(parameters)
            except ValueError as e:
                raise ValidationError("Invalid parameters format") from e
            if not isinstance(params, dict):
                raise ValidationError("Invalid parameters format")
        data = controller.check_tool_access(user_id, tool_name, params).to_payload()
    else:
        raise ValidationError("Invalid action parameter")

    return _respond(action, data, user_id)


@router.post("/tools")
async def post_subscription_tools(
    request: Request,
    user_id: str = Depends(get_current_user_id),
    controller: ToolAccessController = Depends(get_tool_access_controller),
):
    """Single check, batch check or combined subscription info."""
    try:
        body = await request.json()
    except ValueError as e:
        raise ValidationError("Request body must be a JSON object") from e
    if not isinstance(body, dict):
        raise ValidationError("Request body must be a JSON object")

    action = body.get("action") or "check"

    if action == "check":
        req = _parse(ToolCheckRequest, body)
        result = await run_in_threadpool(
            controller.check_tool_access, user_id, req.tool_name, req.parameters
        )
        data = result.to_payload()
    elif action == "batch_check":
        if not isinstance(body.get("tools"), list):
            raise ValidationError("tools array is required for batch check")
        req = _parse(BatchCheckRequest, body)
        requests = [
            {"toolName": tool.tool_name, "parameters": tool.parameters}
            for tool in req.tools
        ]
        results = await run_in_threadpool(controller.check_tools, user_id, requests)
        data = {"results": results}
    elif action == "subscription_info":
        req = _parse(SubscriptionInfoRequest, body)
        data = {}
        if req.include_usage:
            stats = await run_in_threadpool(controller.get_subscription_usage_stats, user_id)
            data["usage"] = stats.to_payload()
        if req.include_available_tools:
            tools = await run_in_threadpool(controller.get_available_tools, user_id)
            data["tools"] = tools.to_payload()
    else:
        raise ValidationError("Invalid action")

    return _respond(action, data, user_id)
