"""
Bedrock agent function-call event and response models.

See https://docs.aws.amazon.com/bedrock/latest/userguide/agents-lambda.html

Dependencies: pydantic
System role: Contract between the Bedrock agent action group and the retrieval Lambda
"""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

FILTER_KEYS = ("filters", "filter")


class AgentParameter(BaseModel):
    """One function parameter supplied by the agent."""

    name: str
    type: str = "string"
    value: str | None = None


class BedrockAgentEvent(BaseModel):
    """Inbound function-call event from a Bedrock agent."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    message_version: str = Field(default="1.0", alias="messageVersion")
    action_group: str = Field(default="", alias="actionGroup")
    function_name: str = Field(default="", alias="function")
    parameters: list[AgentParameter] = Field(default_factory=list)
    session_id: str | None = Field(default=None, alias="sessionId")
    agent: dict[str, Any] | None = None
    input_text: str | None = Field(default=None, alias="inputText")
    session_attributes: dict[str, str] = Field(default_factory=dict, alias="sessionAttributes")
    prompt_session_attributes: dict[str, str] = Field(default_factory=dict, alias="promptSessionAttributes")

    def parameter(self, *names: str) -> str | None:
        """Value of the first parameter matching one of ``names``."""
        for name in names:
            for parameter in self.parameters:
                if parameter.name == name and parameter.value is not None:
                    return parameter.value
        return None

    @property
    def query_text(self) -> str:
        """The ``text`` parameter, falling back to the user's input text."""
        text = self.parameter("text")
        if text and text.strip():
            return text
        return self.input_text or ""

    @property
    def call_filter_json(self) -> str | None:
        return self.parameter(*FILTER_KEYS)

    @property
    def session_filter_json(self) -> str | None:
        """Session-level filter; prompt-session attributes override session attributes."""
        for attributes in (self.prompt_session_attributes, self.session_attributes):
            for key in FILTER_KEYS:
                value = attributes.get(key)
                if value and value.strip():
                    return value
        return None


class FunctionResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    response_state: Literal["FAILURE", "REPROMPT"] | None = Field(default=None, alias="responseState")
    response_body: dict[str, dict[str, str]] = Field(alias="responseBody")


class AgentResponseBody(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    action_group: str = Field(alias="actionGroup")
    function_name: str = Field(alias="function")
    function_response: FunctionResponse = Field(alias="functionResponse")


class BedrockAgentResponse(BaseModel):
    """Outbound function response with a TEXT body."""

    model_config = ConfigDict(populate_by_name=True)

    message_version: str = Field(default="1.0", alias="messageVersion")
    response: AgentResponseBody
    session_attributes: dict[str, str] | None = Field(default=None, alias="sessionAttributes")
    prompt_session_attributes: dict[str, str] | None = Field(default=None, alias="promptSessionAttributes")

    @classmethod
    def text(
        cls,
        event: BedrockAgentEvent,
        body: str,
        response_state: Literal["FAILURE", "REPROMPT"] | None = None,
    ) -> "BedrockAgentResponse":
        """Build a TEXT response echoing the event's action group, function and session state."""
        return cls(
            message_version=event.message_version,
            response=AgentResponseBody(
                action_group=event.action_group,
                function_name=event.function_name,
                function_response=FunctionResponse(
                    response_state=response_state,
                    response_body={"TEXT": {"body": body}},
                ),
            ),
            session_attributes=event.session_attributes,
            prompt_session_attributes=event.prompt_session_attributes,
        )

    def to_dict(self) -> dict[str, Any]:
        """Wire format expected by the agent runtime."""
        return self.model_dump(by_alias=True, exclude_none=True)

    @property
    def body(self) -> str:
        return self.response.function_response.response_body["TEXT"]["body"]
