"""HTTP route for the website chat.

Invalid conversations are rejected by validation; everything after that
answers 200 so the chat widget always has something to show.
"""

from __future__ import annotations

from fastapi import APIRouter, Request

from leadflow.chat.models import ChatReply, ChatRequest
from leadflow.chat.service import ChatService

router = APIRouter(prefix="/api")


@router.post("/chat", response_model=ChatReply)
async def chat(body: ChatRequest, request: Request) -> ChatReply:
    service: ChatService | None = request.app.state.services.get("chat_service")
    if service is None:
        service = ChatService(None)
    return await service.reply(body)
