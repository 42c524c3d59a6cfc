"""External integrations: language-model gateway and output parsing."""

from carson.integrations.model_gateway import (
    HttpModelGateway,
    ModelGateway,
    ModelResponse,
    OfflineModelGateway,
    PromptPayload,
    invoke_with_timeout,
)
from carson.integrations.parsing import Malformed, Ok, parse_model_output

__all__ = [
    "HttpModelGateway",
    "Malformed",
    "ModelGateway",
    "ModelResponse",
    "OfflineModelGateway",
    "Ok",
    "PromptPayload",
    "invoke_with_timeout",
    "parse_model_output",
]
