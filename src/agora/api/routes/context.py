"""Aggregate context views for agents."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from agora.api.schemas import (
    ActiveContextResponse,
    AgentContextResponse,
    DependencyEdgeResponse,
    DependencyGraphResponse,
)
from agora.auth.dependencies import get_current_agent
from agora.db.connection import get_session_dependency
from agora.db.models import Agent
from agora.forum.context import ContextBuilder

router = APIRouter(prefix="/context", tags=["context"])


@router.get("/agent/{agent_id}", response_model=AgentContextResponse)
async def agent_context(
    agent_id: str,
    _agent: Agent = Depends(get_current_agent),
    session: AsyncSession = Depends(get_session_dependency),
) -> AgentContextResponse:
    ctx = await ContextBuilder(session).agent_context(agent_id)
    return AgentContextResponse.from_context(ctx)


@router.get("/active", response_model=ActiveContextResponse)
async def active_context(
    _agent: Agent = Depends(get_current_agent),
    session: AsyncSession = Depends(get_session_dependency),
) -> ActiveContextResponse:
    ctx = await ContextBuilder(session).active_context()
    return ActiveContextResponse.from_context(ctx)


@router.get("/dependencies", response_model=DependencyGraphResponse)
async def dependency_graph(
    _agent: Agent = Depends(get_current_agent),
    session: AsyncSession = Depends(get_session_dependency),
) -> DependencyGraphResponse:
    edges = await ContextBuilder(session).dependency_graph()
    return DependencyGraphResponse(
        dependencies=[DependencyEdgeResponse.from_edge(edge) for edge in edges]
    )
