"""System prompt selection for the live task processor.

Rules are checked in order and the first rule with a keyword contained in
the lowercased task wins. The catch-all rule has no keywords and is last.
"""

from __future__ import annotations

from dataclasses import dataclass

from .models import TaskRequest


@dataclass(frozen=True)
class PromptRule:
    name: str
    keywords: tuple[str, ...]
    instruction: str

    def matches(self, task_lower: str) -> bool:
        # Empty keyword tuple is the catch-all.
        if not self.keywords:
            return True
        return any(keyword in task_lower for keyword in self.keywords)


SYSTEM_PROMPT_RULES: tuple[PromptRule, ...] = (
    PromptRule(
        name="analysis",
        keywords=("analyze", "analysis"),
        instruction=(
            "You are a data analysis assistant. Provide clear, structured analysis with "
            "actionable insights. Format your response with bullet points and include key "
            "metrics when relevant."
        ),
    ),
    PromptRule(
        name="summarization",
        keywords=("summarize", "summary"),
        instruction=(
            "You are a summarization expert. Create concise, well-structured summaries that "
            "capture the key points. Use clear headings and bullet points for better "
            "readability."
        ),
    ),
    PromptRule(
        name="report",
        keywords=("report", "update"),
        instruction=(
            "You are a professional report writer. Create structured, professional reports "
            "with clear sections. Include relevant details and maintain a formal tone."
        ),
    ),
    PromptRule(
        name="business_development",
        keywords=("lead", "client"),
        instruction=(
            "You are a business development assistant. Focus on actionable insights for lead "
            "management and client relations. Provide specific recommendations and next steps."
        ),
    ),
    PromptRule(
        name="default",
        keywords=(),
        instruction=(
            "You are a helpful AI assistant. Provide clear, accurate, and actionable responses. "
            "Structure your answers logically and include relevant details."
        ),
    ),
)


def select_prompt_rule(task: str) -> PromptRule:
    task_lower = task.lower()
    for rule in SYSTEM_PROMPT_RULES:
        if rule.matches(task_lower):
            return rule
    # Unreachable while the catch-all stays last.
    return SYSTEM_PROMPT_RULES[-1]


def select_system_prompt(task: str) -> str:
    return select_prompt_rule(task).instruction


def build_user_prompt(request: TaskRequest) -> str:
    prompt = f"Task: {request.task}"
    if request.context:
        prompt += f"\n\nContext: {request.context}"
    if request.priority:
        prompt += f"\n\nPriority: {request.priority}"
    return prompt
