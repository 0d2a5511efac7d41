"""
Trim game data before it goes into a prompt: UUIDs shrink to their first four
characters and timestamp fields are dropped. Everything else is kept.
"""

import json
import re
from typing import Any

from game.state import Turn

UUID_PATTERN = re.compile(r"[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}", re.IGNORECASE)
TIMESTAMP_FIELD = re.compile(r'"timestamp":\s*"[^"]+"')


def compress_ids(text: str) -> str:
    return UUID_PATTERN.sub(lambda m: m.group(0)[:4], text)


def strip_timestamps(text: str) -> str:
    text = TIMESTAMP_FIELD.sub("", text)
    text = re.sub(r",\s*,", ",", text)
    text = re.sub(r",(\s*[}\]])", r"\1", text)
    return re.sub(r"([\[{]\s*),", r"\1", text)


def turn_to_wire(turn: Turn) -> dict[str, Any]:
    """A turn in the camelCase shape the prompts and the UI use."""
    out = {
        "turnId": turn.turn_id,
        "playerId": turn.player_id,
        "playerName": turn.player_name,
        "templateType": turn.template_type,
        "timestamp": turn.timestamp,
        "prompt": turn.prompt,
        "templateParams": turn.template_params,
        "response": turn.response,
        "status": turn.status.value,
    }
    if turn.score is not None:
        out["score"] = turn.score
    if turn.ai_commentary is not None:
        out["aiCommentary"] = turn.ai_commentary
    if turn.duration is not None:
        out["duration"] = turn.duration
    return out


def sanitize_for_ai(obj: Any) -> str:
    """JSON for a prompt, with ids compressed and timestamps removed."""
    if isinstance(obj, Turn):
        obj = turn_to_wire(obj)
    elif isinstance(obj, list):
        obj = [turn_to_wire(o) if isinstance(o, Turn) else o for o in obj]
    text = json.dumps(obj, separators=(",", ":"), default=str)
    return strip_timestamps(compress_ids(text))
