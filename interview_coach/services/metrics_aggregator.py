"""
Behavioral metrics derived from a session's utterances.

Everything here is pure and deterministic: the same messages and timings
always produce the same Metrics. The recorder can be driven incrementally
(one utterance at a time, as the interview runs) or rebuilt from a stored
transcript with ``MetricsAccumulator.from_messages``.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional

from interview_coach.core.config import settings
from interview_coach.schemas import EmotionalTone, Message, Metrics, MetricsUpdate

PAUSE_THRESHOLD_MS = 1000

FILLER_WORDS = ("um", "uh", "like", "you know", "actually", "basically", "literally")
_SINGLE_FILLERS = frozenset(w for w in FILLER_WORDS if " " not in w)
_PHRASE_FILLERS = frozenset(w for w in FILLER_WORDS if " " in w)

_NON_ALPHA = re.compile(r"[^a-z]")

# Baseline emotional tone when no emotion service is available
BASE_EMOTIONAL_TONE = {
    "positive": 0.6,
    "neutral": 0.3,
    "negative": 0.1,
    "confident": 0.7,
    "nervous": 0.3,
}


def _normalized_tokens(text: str) -> List[str]:
    return [_NON_ALPHA.sub("", tok) for tok in (text or "").lower().split()]


def count_filler_words(text: str, phrase_matching: Optional[str] = None) -> int:
    """Count filler words in ``text``.

    ``token`` mode compares each whitespace token on its own, so multi-word
    fillers such as "you know" never match. ``phrase`` mode additionally
    matches adjacent token pairs against the multi-word fillers.
    """
    mode = phrase_matching or settings.filler_phrase_matching
    tokens = _normalized_tokens(text)
    if mode == "token":
        return sum(1 for tok in tokens if tok in _SINGLE_FILLERS)

    tokens = [tok for tok in tokens if tok]
    count = 0
    i = 0
    while i < len(tokens):
        if i + 1 < len(tokens) and f"{tokens[i]} {tokens[i + 1]}" in _PHRASE_FILLERS:
            count += 1
            i += 2
            continue
        if tokens[i] in _SINGLE_FILLERS:
            count += 1
        i += 1
    return count


def count_words(text: str) -> int:
    return len((text or "").split())


def is_pause(gap_ms: Optional[float]) -> bool:
    return gap_ms is not None and gap_ms > PAUSE_THRESHOLD_MS


def words_per_minute(word_count: int, speaking_ms: float) -> int:
    if speaking_ms <= 0:
        return 0
    return int(round(word_count / (speaking_ms / 60000.0)))


def confidence_score(filler_count: int, word_count: int) -> float:
    score = 1.0 - filler_count / max(1, word_count)
    return min(1.0, max(0.3, score))


def _clamp01(value: float) -> float:
    return round(min(1.0, max(0.0, value)), 3)


def synthesize_emotional_tone(confidence: float, filler_count: int) -> EmotionalTone:
    """Illustrative tone distribution; not a measurement.

    Starts from the fixed baseline and shifts weight between ``confident``
    and ``nervous`` with the confidence score and filler count.
    """
    shift = min(0.2, 0.02 * max(0, filler_count)) - (confidence - 0.7) * 0.2
    tone = dict(BASE_EMOTIONAL_TONE)
    tone["confident"] = _clamp01(tone["confident"] - shift)
    tone["nervous"] = _clamp01(tone["nervous"] + shift)
    return EmotionalTone(**tone)


@dataclass
class MetricsAccumulator:
    """Running totals for the user's side of the conversation."""

    phrase_matching: Optional[str] = None
    user_speaking_time: float = 0.0
    total_pauses: int = 0
    total_pause_time: float = 0.0
    longest_pause: float = 0.0
    filler_words_count: int = 0
    words_spoken: int = 0
    interruption_count: int = 0

    def record_user_utterance(self, text: str, pause_before_ms: float = 0, speech_ms: float = 0) -> None:
        text = (text or "").strip()
        if not text:
            return
        self.filler_words_count += count_filler_words(text, self.phrase_matching)
        self.words_spoken += count_words(text)
        self.user_speaking_time += max(0.0, speech_ms or 0)
        if is_pause(pause_before_ms):
            self.total_pauses += 1
            self.total_pause_time += pause_before_ms
            self.longest_pause = max(self.longest_pause, pause_before_ms)

    @classmethod
    def from_messages(
        cls, messages: Iterable[Message | Mapping[str, Any]], phrase_matching: Optional[str] = None
    ) -> "MetricsAccumulator":
        acc = cls(phrase_matching=phrase_matching)
        for raw in messages:
            msg = raw if isinstance(raw, Message) else Message.model_validate(raw)
            if msg.sender != "user":
                continue
            acc.record_user_utterance(msg.text, msg.pause_before or 0, msg.duration or 0)
        return acc

    @property
    def average_pause_length(self) -> float:
        if self.total_pauses == 0:
            return 0.0
        return self.total_pause_time / self.total_pauses

    def finalize(self, total_duration_ms: float) -> Metrics:
        total = max(0.0, total_duration_ms)
        confidence = confidence_score(self.filler_words_count, self.words_spoken)
        avg_pause = self.average_pause_length
        return Metrics(
            total_duration=total,
            user_speaking_time=self.user_speaking_time,
            interviewer_speaking_time=max(0.0, total - self.user_speaking_time),
            total_pauses=self.total_pauses,
            average_pause_length=avg_pause,
            longest_pause=self.longest_pause,
            # Response latency is approximated by the average qualifying pause
            average_response_time=avg_pause,
            words_per_minute=words_per_minute(self.words_spoken, self.user_speaking_time),
            interruption_count=self.interruption_count,
            filler_words_count=self.filler_words_count,
            confidence_score=confidence,
            emotional_tone=synthesize_emotional_tone(confidence, self.filler_words_count),
        )


def merge_metrics(current: Mapping[str, Any] | Metrics | None, partial: Mapping[str, Any] | MetricsUpdate | None) -> Metrics:
    """Last-write-wins merge of a partial update into stored metrics.

    Each key present in ``partial`` overwrites the stored value; keys absent
    from ``partial`` (or sent as null) are kept. ``emotional_tone`` is merged
    the same way one level down. No numeric accumulation happens here.
    """
    if isinstance(current, Metrics):
        base: Dict[str, Any] = current.model_dump()
    else:
        base = Metrics.model_validate(current or {}).model_dump()

    if partial is None:
        return Metrics.model_validate(base)
    update = partial if isinstance(partial, MetricsUpdate) else MetricsUpdate.model_validate(partial)
    changes = update.model_dump(exclude_none=True)

    tone_changes = changes.pop("emotional_tone", None)
    base.update(changes)
    if tone_changes:
        base["emotional_tone"] = {**base["emotional_tone"], **tone_changes}
    return Metrics.model_validate(base)
