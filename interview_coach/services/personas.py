"""
Interviewer persona catalog.

Each persona has:
- id: value stored on ``Interview.mentor_id``
- name: shown on reports as the interviewer
- style: short description used by clients when presenting the persona
"""

from __future__ import annotations

from typing import Optional

DEFAULT_INTERVIEWER_NAME = "AI Interviewer"

PERSONAS: list[dict[str, str]] = [
    {"id": "alex", "name": "Alex Morgan", "style": "Friendly generalist, behavioral focus"},
    {"id": "priya", "name": "Priya Raman", "style": "Senior engineering manager, technical depth"},
    {"id": "daniel", "name": "Daniel Okafor", "style": "Product leader, strategy and prioritization"},
    {"id": "mei", "name": "Mei Tanaka", "style": "HR partner, culture and collaboration"},
    {"id": "lucas", "name": "Lucas Ferreira", "style": "Startup founder, fast-paced and direct"},
]

_BY_ID = {p["id"]: p for p in PERSONAS}


def get_persona(persona_id: Optional[str]) -> Optional[dict[str, str]]:
    if not persona_id:
        return None
    return _BY_ID.get(persona_id)


def interviewer_name(persona_id: Optional[str]) -> str:
    persona = get_persona(persona_id)
    return persona["name"] if persona else DEFAULT_INTERVIEWER_NAME
