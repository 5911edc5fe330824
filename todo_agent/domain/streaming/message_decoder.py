"""Decoder for the raw agent message stream.

The session emits a loosely shaped sequence: typed SDK objects
(``AssistantMessage``, ``ResultMessage``, ...) or, from lower-level
transports, plain dicts in the CLI's JSON form. Each message is decoded into
zero or more recognized shapes; anything unrecognized decodes to nothing.
"""
from typing import Any, List, Mapping, Optional, Tuple, Union
from pydantic import BaseModel, ConfigDict
from claude_agent_sdk import AssistantMessage, ResultMessage, TextBlock, ToolUseBlock
import structlog

logger = structlog.get_logger(__name__)


class ContentShape(BaseModel):
    """Assistant-authored content blocks"""
    model_config = ConfigDict(frozen=True)

    texts: Tuple[str, ...] = ()
    tools: Tuple[str, ...] = ()


class UsageShape(BaseModel):
    """Token accounting attached to a message"""
    model_config = ConfigDict(frozen=True)

    input_tokens: int = 0
    output_tokens: int = 0


class ResultShape(BaseModel):
    """Final result payload"""
    model_config = ConfigDict(frozen=True)

    text: str


MessageShape = Union[ContentShape, UsageShape, ResultShape]


def _field(obj: Any, name: str) -> Any:
    if isinstance(obj, Mapping):
        return obj.get(name)
    return getattr(obj, name, None)


def _token_count(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0
    return max(int(value), 0)


def _is_assistant(message: Any) -> bool:
    if isinstance(message, AssistantMessage):
        return True
    return isinstance(message, Mapping) and message.get("type") == "assistant"


def _assistant_payload(message: Any) -> Any:
    """The part of an assistant message that holds content and usage"""
    if isinstance(message, Mapping):
        inner = message.get("message")
        return inner if isinstance(inner, Mapping) else None
    return message


def _block_text(block: Any) -> Optional[str]:
    if isinstance(block, TextBlock) or (isinstance(block, Mapping) and block.get("type") == "text"):
        text = _field(block, "text")
        if isinstance(text, str) and text:
            return text
    return None


def _block_tool_name(block: Any) -> Optional[str]:
    if isinstance(block, ToolUseBlock) or (isinstance(block, Mapping) and block.get("type") == "tool_use"):
        name = _field(block, "name")
        if isinstance(name, str) and name:
            return name
    return None


def decode_content(message: Any) -> Optional[ContentShape]:
    if not _is_assistant(message):
        return None
    payload = _assistant_payload(message)
    content = _field(payload, "content") if payload is not None else None
    if isinstance(content, str):
        return ContentShape(texts=(content,)) if content else None
    if not isinstance(content, (list, tuple)) or not content:
        return None

    # text blocks are scanned before tool-use blocks
    texts = tuple(t for t in (_block_text(b) for b in content) if t is not None)
    tools = tuple(n for n in (_block_tool_name(b) for b in content) if n is not None)
    if not texts and not tools:
        return None
    return ContentShape(texts=texts, tools=tools)


def decode_usage(message: Any) -> Optional[UsageShape]:
    # Result messages carry the cumulative total, already reported per turn
    if not _is_assistant(message):
        return None
    payload = _assistant_payload(message)
    usage = _field(payload, "usage") if payload is not None else None
    if not usage or not isinstance(usage, Mapping):
        return None
    return UsageShape(
        input_tokens=_token_count(usage.get("input_tokens")),
        output_tokens=_token_count(usage.get("output_tokens")),
    )


def decode_result(message: Any) -> Optional[ResultShape]:
    if not isinstance(message, (ResultMessage, Mapping)):
        return None
    result = _field(message, "result")
    if isinstance(result, str) and result:
        return ResultShape(text=result)
    return None


def decode_message(message: Any) -> List[MessageShape]:
    """Recognized shapes of one raw message, in emission order"""
    try:
        shapes = [decode_content(message), decode_usage(message), decode_result(message)]
    except (AttributeError, TypeError, ValueError) as e:
        logger.debug("Skipping undecodable message", error=str(e), kind=type(message).__name__)
        return []
    
    decoded = [shape for shape in shapes if shape is not None]
    if not decoded:
        logger.debug("Message carries no recognized shape", kind=type(message).__name__)
    return decoded
