"""
Models for the retrieval Lambda.
"""

from .agent_event import AgentParameter, BedrockAgentEvent, BedrockAgentResponse

__all__ = ["AgentParameter", "BedrockAgentEvent", "BedrockAgentResponse"]
