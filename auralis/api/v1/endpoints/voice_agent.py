from typing import Optional

from fastapi import APIRouter, Depends, Query

from auralis.core.utils.timeutils import utcnow
from auralis.services.voice_agent_service import VoiceAgentService, get_voice_agent_service


router = APIRouter(tags=["voice-agent"])


@router.get("/agents")
async def list_agents(
    agent_id: Optional[str] = Query(None, alias="agentId"),
    voice_agent: VoiceAgentService = Depends(get_voice_agent_service),
):
    if agent_id:
        agent = await voice_agent.get_agent(agent_id)
        return {"success": True, "agent": agent, "timestamp": utcnow().isoformat()}

    agents = await voice_agent.list_agents()
    return {"success": True, "agents": agents, "totalCount": len(agents), "timestamp": utcnow().isoformat()}


@router.get("/conversations")
async def list_conversations(
    agent_id: Optional[str] = Query(None, alias="agentId"),
    page_size: int = Query(30, alias="pageSize", ge=1, le=100),
    voice_agent: VoiceAgentService = Depends(get_voice_agent_service),
):
    conversations = await voice_agent.list_conversations(agent_id=agent_id, page_size=page_size)
    return {
        "success": True,
        "conversations": conversations,
        "totalCount": len(conversations),
        "timestamp": utcnow().isoformat(),
    }


@router.get("/conversations/{conversation_id}")
async def get_conversation(
    conversation_id: str,
    voice_agent: VoiceAgentService = Depends(get_voice_agent_service),
):
    conversation = await voice_agent.get_conversation(conversation_id)
    return {"success": True, "conversation": conversation, "timestamp": utcnow().isoformat()}
