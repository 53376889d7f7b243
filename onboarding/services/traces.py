"""
Trace parsing for dialogue runtime responses.
"""
import logging
from typing import Any, Iterable, Union

from ..models.traces import Trace, TraceType, ParsedResponse
from .profile_merge import merge_profile_data

logger = logging.getLogger(__name__)


def parse_traces(traces: Iterable[Union[Trace, dict]]) -> ParsedResponse:
    """
    Collect messages, speech URLs, extracted profile data and the end
    marker from a batch of traces.

    tts_urls is index-aligned with messages; text traces get "".
    Unknown or malformed traces are skipped.
    """
    result = ParsedResponse()

    for raw in traces or []:
        trace = _coerce(raw)
        if trace is None:
            continue

        if trace.type == TraceType.TEXT.value:
            message = trace.payload_get("message")
            if message:
                result.messages.append(message)
                result.tts_urls.append("")

        elif trace.type == TraceType.SPEAK.value:
            message = trace.payload_get("message")
            if message:
                result.messages.append(message)
                result.tts_urls.append(trace.payload_get("src") or "")

        elif trace.type == TraceType.VISUAL.value:
            # Images are not rendered in the onboarding chat
            pass

        elif trace.type == TraceType.CHOICE.value:
            result.choices.extend(_choice_names(trace))

        elif trace.type == TraceType.END.value:
            result.is_complete = True

        elif trace.type == TraceType.PROFILE_DATA.value:
            data = trace.payload_get("data")
            if isinstance(data, dict):
                result.profile_data = merge_profile_data(result.profile_data, data)

        else:
            logger.debug("Ignoring unknown trace type: %s", trace.type)

    return result


def _coerce(raw: Any):
    if isinstance(raw, Trace):
        return raw
    if isinstance(raw, dict) and isinstance(raw.get("type"), str):
        return Trace(**raw)
    logger.debug("Skipping malformed trace: %r", raw)
    return None


def _choice_names(trace: Trace) -> list[str]:
    buttons = trace.payload_get("buttons") or trace.payload_get("actions") or []
    names = []
    for button in buttons:
        if isinstance(button, dict) and button.get("name"):
            names.append(button["name"])
    return names
