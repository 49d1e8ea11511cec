"""
Behavioral enrichment for the conversation analysis.

An external video-emotion service (Imentiv) can describe the candidate's
emotions, personality and non-verbal behavior. It is optional: when it is not
configured, the session has no media, or the call fails, a synthetic
enrichment is derived from the session metrics instead.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from interview_coach.core.config import Settings, settings as default_settings
from interview_coach.schemas import Metrics

logger = logging.getLogger(__name__)


def synthetic_enrichment(metrics: Metrics) -> Dict[str, Any]:
    conf = metrics.confidence_score
    fillers = metrics.filler_words_count
    leading = "confidence" if conf > 0.7 else "nervousness"
    return {
        "emotion_analysis": {
            "dominant_emotions": [
                {"emotion": "neutral", "confidence": 0.4},
                {"emotion": leading, "confidence": 0.3},
                {"emotion": "focus", "confidence": 0.3},
            ],
            "emotion_timeline": [
                {"timestamp": 0, "emotion": "neutral", "intensity": 0.5},
                {"timestamp": 50, "emotion": leading, "intensity": conf},
                {"timestamp": 100, "emotion": "focus", "intensity": 0.7},
            ],
            "valence_arousal": {
                "valence": 0.6 if conf > 0.6 else 0.4,
                "arousal": 0.7 if fillers > 5 else 0.5,
            },
            "micro_expressions": [],
        },
        "personality_insights": {
            "big_five": {
                "openness": 0.7 if conf > 0.7 else 0.6,
                "conscientiousness": 0.8 if fillers < 5 else 0.6,
                "extraversion": 0.7 if conf > 0.6 else 0.5,
                "agreeableness": 0.6,
                "neuroticism": 0.7 if conf < 0.5 else 0.3,
            },
            "traits": [
                "confident" if conf > 0.7 else "developing-confidence",
                "articulate" if fillers < 5 else "needs-communication-practice",
                "quick-thinking" if metrics.average_response_time < 3000 else "deliberate",
            ],
            "work_style": "",
        },
        "behavioral_metrics": {
            "eye_contact": round(conf * 0.8, 3),
            "facial_expression_variety": 0.6,
            "emotional_stability": 0.8 if conf > 0.6 else 0.6,
            "authenticity": 0.75,
        },
        "synthetic": True,
    }


def _normalize(payload: Dict[str, Any]) -> Dict[str, Any]:
    personality = payload.get("personality") or {}
    behavior = payload.get("behavior") or {}
    return {
        "emotion_analysis": {
            "dominant_emotions": payload.get("emotions") or [],
            "emotion_timeline": payload.get("timeline") or [],
            "valence_arousal": payload.get("valence_arousal") or {},
            "micro_expressions": payload.get("micro_expressions") or [],
        },
        "personality_insights": {
            "big_five": personality.get("big_five") or {},
            "traits": personality.get("traits") or [],
            "work_style": personality.get("work_style") or "",
        },
        "behavioral_metrics": {
            "eye_contact": behavior.get("eye_contact") or 0,
            "facial_expression_variety": behavior.get("expression_variety") or 0,
            "emotional_stability": behavior.get("emotional_stability") or 0,
            "authenticity": behavior.get("authenticity") or 0,
        },
        "synthetic": False,
    }


class EmotionAnalysisClient:
    def __init__(self, settings: Settings = default_settings, http_client: Optional[httpx.AsyncClient] = None):
        self.settings = settings
        self._http = http_client

    @property
    def configured(self) -> bool:
        return bool(self.settings.imentiv_api_key)

    async def _post(self, payload: Dict[str, Any]) -> httpx.Response:
        headers = {"Authorization": f"Bearer {self.settings.imentiv_api_key}"}
        if self._http is not None:
            return await self._http.post(self.settings.imentiv_api_url, json=payload, headers=headers)
        async with httpx.AsyncClient(timeout=self.settings.llm_timeout_seconds) as client:
            return await client.post(self.settings.imentiv_api_url, json=payload, headers=headers)

    async def analyze(self, media_ref: Optional[str]) -> Optional[Dict[str, Any]]:
        """Return enrichment for the media, or None when unavailable."""
        if not media_ref or not self.configured:
            return None
        try:
            response = await self._post(
                {
                    "video_url": media_ref,
                    "analysis_type": "comprehensive",
                    "include_transcript": True,
                    "include_personality": True,
                }
            )
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"Emotion analysis unavailable: {e}", extra={"provider": "imentiv"})
            return None
        if not isinstance(data, dict):
            return None
        return _normalize(data)
