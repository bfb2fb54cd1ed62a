import logging
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException

from ..bedrock_client import AgentInvocationError, invoke_agent, mock_invoke, with_time_context
from ..config import CONFIG
from ..schemas import AssistantRequest, AssistantResponse
from ..security import AuthContext, get_auth_context

router = APIRouter(prefix="/api/v1", tags=["assistant"])
logger = logging.getLogger(__name__)


@router.post("/assistant/chat", response_model=AssistantResponse)
async def chat(payload: AssistantRequest, auth: AuthContext = Depends(get_auth_context)) -> AssistantResponse:
    message = payload.message.strip()
    if not message:
        raise HTTPException(status_code=400, detail="Message is required")

    now = datetime.now()
    current_date = payload.current_date or now.strftime("%Y-%m-%d")
    current_time = payload.current_time or now.strftime("%H:%M:%S")
    enhanced = with_time_context(message, current_date, current_time)

    if not CONFIG.bedrock_agent_configured:
        logger.info("assistant mock reply", extra={"user_id": auth.user_id})
        return AssistantResponse(**mock_invoke(enhanced, session_id=payload.session_id))

    try:
        reply = invoke_agent(
            enhanced,
            session_id=payload.session_id,
            session_attributes={
                "userId": auth.user_id,
                "userEmail": auth.user_email or "",
                "userName": auth.user_name or "",
            },
        )
    except AgentInvocationError as exc:
        raise HTTPException(status_code=502, detail=f"Failed to invoke agent: {exc}") from exc
    return AssistantResponse(**reply)
