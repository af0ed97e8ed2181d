# inference/prompts.py

from __future__ import annotations

from typing import List

from focuslens.core.models.attention import ImageAttention, TextAttention, VideoAttention
from focuslens.core.models.focus_session import FocusSession
from focuslens.core.models.user_activity import UserActivity
from focuslens.core.models.website_visit import WebsiteVisit
from focuslens.core.services.activity_service import attention_content


def focus_drift_prompt(previous: FocusSession, activities: List[UserActivity]) -> str:
    return f"""
You are performing focus analysis to check if the user's attention has shifted to a new topic from their previous topic.

Previous focus: {previous.topic_label}
Previous keywords: {", ".join(previous.keywords)}

Current attention:
{attention_content(activities)}

---

Question:
Does the current attention clearly belong to a different subject (for example, moving from tech to cooking or fashion)?
Or is it still about the same general topic or subtopic, and related concepts within the same domain?
Be sensitive to context - similar words might have different meanings in different contexts.

If it is even related or still part of the same domain then answer no (still focused).
Otherwise, if you don't find a relation between the previous focus and current attention, then answer yes (shifted).

Answer in one word (yes/no) only, no reasoning.""".strip()


def focus_area_prompt(activities: List[UserActivity]) -> str:
    return f"""
You are an attention analysis model. Based on the following reading sessions,
determine the user's primary (current) focus area.

Each session represents what the user has been reading recently, most recent first.

Sessions:
---
{attention_content(activities)}
---

Think about the most recent and dominant topic or theme the user is focusing on.

- Respond with only one or two words that best represent this topic.
- If multiple topics exist, pick the most recent or dominant one.
- Do not include punctuation, explanations, or any extra text.

If you cannot determine the user's current focus area (probably because
the user is not reading anything), return null""".strip()


def summarize_focus_prompt(keywords: List[str]) -> str:
    return f"""
Reply in one or two words.
What is the single greatest common factor between these:

{", ".join(keywords)}

Note: Be specific enough to be meaningful. Consider both direct and indirect relationships.
If no clear commonality exists, identify the most significant or dominant term.""".strip()


def website_summary_prompt(
    visit: WebsiteVisit,
    texts: List[TextAttention],
    images: List[ImageAttention],
    videos: List[VideoAttention],
) -> str:
    sections = [
        "Summarize my activity for this website in a concise manner:",
        "",
        f"Title: {visit.title}",
        f"URL: {visit.url}",
    ]
    if texts:
        sections += ["", "Content the user paid attention to:"]
        sections += [t.text for t in texts]
    if images:
        sections += ["", "Image descriptions the user paid attention to:"]
        sections += [i.caption for i in images if i.caption]
    if videos:
        sections += ["", "Videos the user watched:"]
        sections += [f"{v.title}: {v.caption}".strip() for v in videos]
    sections += [
        "",
        "Provide a concise summary of what the website is and how I paid attention to it in a few words.",
    ]
    return "\n".join(sections)


def activity_summary_prompt(activities: List[UserActivity]) -> str:
    return f"""
Based on the following user activity data from the last minute, generate a 5-6 word third-person summary describing what the user is doing.

Activity Data:
{attention_content(activities)}

Example summaries:
- You are reading about Hermione
- You are learning React hooks
- You are watching a cooking video

Requirements:
- Start with "You are"
- Use at most 6 words
- Name the subject, not the website

Reply with a JSON object only, for example: {{"summary": "You are reading about Hermione"}}""".strip()
