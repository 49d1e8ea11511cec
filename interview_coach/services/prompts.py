"""
Prompt templates for the report pipeline.

Both prompts ask for a single JSON object with camelCase keys; the analyzers
read the result field by field and fill gaps with their defaults.
"""
from __future__ import annotations

from typing import Any, Dict, Iterable, Mapping

from interview_coach.schemas import Message, Metrics

JSON_ONLY = "Return ONLY valid JSON. No markdown, no commentary."

QUESTION_PROMPT = """You are a senior interview coach who prepares candidates for {job_title} roles.

Candidate background: {user_summary}
Interview question: "{question}"
Candidate answer: "{response}"

Score the answer on four dimensions:
- contentQuality (40%): relevance, concrete and quantified examples, role competencies
- communicationEffectiveness (30%): clarity, structure, delivery
- strategicThinking (20%): problem-solving approach, business impact
- culturalFit (10%): collaboration, ownership, growth mindset

Use the STAR method (Situation, Task, Action, Result) as the structural yardstick.
Scoring bands: 90-100 exceptional, 80-89 excellent, 70-79 good, 60-69 average,
50-59 below average, 0-49 poor. Be strict; most answers land between 50 and 70.

Respond with this JSON object:
{{
  "overallScore": 0-100,
  "dimensionScores": {{
    "contentQuality": 0-100,
    "communicationEffectiveness": 0-100,
    "strategicThinking": 0-100,
    "culturalFit": 0-100
  }},
  "detailedFeedback": "150-200 words on strengths, weaknesses and structure",
  "keyStrengths": ["strength with example", "..."],
  "criticalGaps": ["gap with impact", "..."],
  "improvementStrategy": {{
    "immediate": ["actionable tip", "..."],
    "practice": ["practice exercise", "..."],
    "resources": ["framework or resource", "..."]
  }},
  "benchmarkComparison": "how this compares with typical {job_title} candidates",
  "redFlags": ["concerning pattern", "..."],
  "starMethodAlignment": "how well the answer follows STAR"
}}

{json_only}"""


CONVERSATION_PROMPT = """You are an executive interview coach and industrial psychologist assessing a candidate for a {job_title} role.

CANDIDATE
- Target role: {job_title}
- Background: {user_summary}
- Role requirements: {job_summary}

TRANSCRIPT
{transcript}

BEHAVIORAL METRICS
- Duration: {duration_min} minutes
- Speaking time: {speaking_sec} seconds ({speaking_share}% of total)
- Pauses: {total_pauses}, average {avg_pause}ms, longest {longest_pause}ms
- Average response latency: {avg_rt}ms
- Speech rate: {wpm} WPM
- Filler words: {fillers}
- Confidence index: {confidence_pct}%

BEHAVIORAL ENRICHMENT
{enrichment}

Be evidence-based and strict: most candidates score 40-65, 70+ only for genuinely strong
answers, 80+ only for outstanding ones.

Respond with this JSON object:
{{
  "performanceAnalysis": {{
    "communicationSkills": {{"score": 0-100, "strengths": [], "improvements": [], "feedback": "",
      "subScores": {{"clarity": 0-100, "structure": 0-100, "engagement": 0-100, "professionalism": 0-100}}}},
    "technicalKnowledge": {{"score": 0-100, "strengths": [], "improvements": [], "feedback": "",
      "depthAssessment": "", "industryAlignment": ""}},
    "problemSolving": {{"score": 0-100, "strengths": [], "improvements": [], "feedback": "",
      "cognitiveLoad": "", "innovationIndex": ""}},
    "emotionalIntelligence": {{"score": 0-100, "selfAwareness": 0-100, "socialSkills": 0-100, "empathy": 0-100,
      "feedback": "", "leadershipPotential": ""}},
    "confidence": {{"score": 0-100, "analysis": "", "recommendations": [], "authenticityIndex": ""}},
    "adaptability": {{"score": 0-100, "evidence": [], "growthMindset": ""}}
  }},
  "detailedFeedback": {{
    "overallScore": 0-100,
    "hiringRecommendation": "Strong Hire / Hire / Maybe / No Hire - rationale",
    "summary": "200+ word executive summary",
    "keyStrengths": [],
    "criticalConcerns": [],
    "personalityProfile": {{
      "bigFiveAssessment": {{"openness": "", "conscientiousness": "", "extraversion": "",
        "agreeableness": "", "neuroticism": ""}},
      "workStyle": "",
      "motivationDrivers": []
    }},
    "behavioralInsights": {{"cognitiveProcessing": "", "stressResponse": "",
      "communicationStyle": "", "decisionMaking": ""}},
    "competencyGaps": [{{"competency": "", "currentLevel": "", "requiredLevel": "", "developmentPath": ""}}],
    "recommendations": {{"immediate": [], "shortTerm": [], "longTerm": []}},
    "interviewerNotes": ""
  }}
}}

{json_only}"""


def build_question_prompt(question: str, response: str, job_title: str, user_summary: str) -> str:
    return QUESTION_PROMPT.format(
        job_title=job_title or "the target",
        user_summary=user_summary or "Not provided",
        question=question,
        response=response,
        json_only=JSON_ONLY,
    )


def format_transcript(messages: Iterable[Message]) -> str:
    return "\n".join(f"{m.sender}: {m.text}" for m in messages)


def _pct(value: Any) -> int:
    try:
        return int(round(float(value) * 100))
    except (TypeError, ValueError):
        return 50


def format_enrichment(enrichment: Mapping[str, Any] | None) -> str:
    if not enrichment:
        return "- Not available; infer behavior from the audio metrics above."

    emotion = enrichment.get("emotion_analysis") or {}
    personality = enrichment.get("personality_insights") or {}
    behavior = enrichment.get("behavioral_metrics") or {}
    valence = (emotion.get("valence_arousal") or {})
    big_five: Dict[str, Any] = personality.get("big_five") or {}

    dominant = ", ".join(
        f"{e.get('emotion')} ({_pct(e.get('confidence'))}%)"
        for e in emotion.get("dominant_emotions") or []
        if isinstance(e, Mapping)
    ) or "none detected"
    lines = [
        f"- Dominant emotions: {dominant}",
        f"- Emotional valence: {_pct(valence.get('valence', 0.5))}%",
        f"- Emotional arousal: {_pct(valence.get('arousal', 0.5))}%",
        f"- Eye contact: {_pct(behavior.get('eye_contact', 0.5))}%",
        f"- Emotional stability: {_pct(behavior.get('emotional_stability', 0.5))}%",
        f"- Authenticity: {_pct(behavior.get('authenticity', 0.5))}%",
        f"- Traits: {', '.join(personality.get('traits') or []) or 'not available'}",
        "- Big Five: " + ", ".join(
            f"{trait} {_pct(big_five.get(trait, 0.5))}%"
            for trait in ("openness", "conscientiousness", "extraversion", "agreeableness", "neuroticism")
        ),
    ]
    return "\n".join(lines)


def build_conversation_prompt(
    messages: Iterable[Message],
    metrics: Metrics,
    job_title: str,
    user_summary: str,
    job_summary: str,
    enrichment: Mapping[str, Any] | None,
) -> str:
    total = metrics.total_duration
    return CONVERSATION_PROMPT.format(
        job_title=job_title or "the target",
        user_summary=user_summary or "Not provided",
        job_summary=job_summary or "Not provided",
        transcript=format_transcript(messages) or "(empty transcript)",
        duration_min=round(total / 60000),
        speaking_sec=round(metrics.user_speaking_time / 1000),
        speaking_share=round(metrics.user_speaking_time / total * 100) if total > 0 else 0,
        total_pauses=metrics.total_pauses,
        avg_pause=round(metrics.average_pause_length),
        longest_pause=round(metrics.longest_pause),
        avg_rt=round(metrics.average_response_time),
        wpm=metrics.words_per_minute,
        fillers=metrics.filler_words_count,
        confidence_pct=round(metrics.confidence_score * 100),
        enrichment=format_enrichment(enrichment),
        json_only=JSON_ONLY,
    )
