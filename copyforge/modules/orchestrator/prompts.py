"""
Prompt builders for the orchestrator and its specialists.

All functions here are pure string assembly.
"""
from typing import Dict, Optional
from copyforge.modules.orchestrator.registry import SpecialistConfig, specialist_descriptions
from copyforge.modules.orchestrator.schemas import InvokeSpecialist

EXPECTED_OUTPUT_INSTRUCTIONS: Dict[str, str] = {
    "artifact": "Create an artifact with your output.",
    "analysis": "Provide a detailed analysis with insights and observations.",
    "recommendations": "Give specific, actionable recommendations.",
    "draft": "Create a draft for the user to review and refine.",
    "plan": "Create a structured plan or outline.",
}

DEFAULT_MODE_PROMPT = """You are an expert email marketing copywriter working for the brand described below.
Write clear, on-brand copy, ask a clarifying question when the request is ambiguous and keep answers focused on the user's goal."""


def _context_block(tag: str, content: Optional[str]) -> str:
    if not content:
        return ""
    return f"<{tag}>\n{content}\n</{tag}>"


def build_orchestrator_prompt(brand_info: str, brand_name: Optional[str] = None,
                              memory_context: Optional[str] = None,
                              additional_context: Optional[str] = None) -> str:
    """System prompt for the orchestrator: brand context, specialists on offer and when to delegate"""
    sections = [
        f"You are a marketing AI assistant for {brand_name or 'the brand'}. "
        "You have access to specialist agents that each excel at different tasks.",
        _context_block("brand_context", brand_info),
        _context_block("memory_context", memory_context),
        _context_block("additional_context", additional_context),
        """## YOUR ROLE

You are the user's marketing partner:
1. Understand what they need and ask a clarifying question if it is unclear
2. Break complex requests into smaller tasks
3. Route each task to the right specialist
4. Present the results as one coherent answer""",
        f"## AVAILABLE SPECIALISTS\n\n{specialist_descriptions()}",
        """## WHEN TO DELEGATE

Call invoke_specialist when a task needs deep expertise or a structured deliverable (copy, calendars, flows, analyses).
Answer yourself for simple questions, quick edits, feedback and general conversation.""",
    ]
    return "\n\n".join(s for s in sections if s)


def build_specialist_system_prompt(config: SpecialistConfig, brand_info: str,
                                   memory_context: Optional[str] = None) -> str:
    sections = [
        config.system_prompt,
        _context_block("brand_context", brand_info),
        _context_block("memory_context", memory_context),
    ]
    return "\n\n".join(s for s in sections if s)


def build_mode_system_prompt(mode_prompt: Optional[str], brand_info: str,
                             memory_context: Optional[str] = None) -> str:
    """System prompt for a direct reply in a regular or custom mode"""
    sections = [
        mode_prompt or DEFAULT_MODE_PROMPT,
        _context_block("brand_context", brand_info),
        _context_block("memory_context", memory_context),
    ]
    return "\n\n".join(s for s in sections if s)


def build_specialist_task_prompt(invocation: InvokeSpecialist) -> str:
    """User-turn prompt handed to a specialist: the task plus whatever context the orchestrator passed along"""
    parts = [f"## TASK\n\n{invocation.task}"]

    context = invocation.context
    if context:
        if context.previous_output:
            parts.append(
                f"## PREVIOUS WORK\n\nThe {context.previous_output.specialist} specialist completed work "
                f"that you should build on:\n\n{context.previous_output.output}"
            )
        if context.artifacts:
            artifact_list = "\n".join(
                f"- **{a.title}** ({a.kind}): {a.summary or 'No summary'}" for a in context.artifacts
            )
            parts.append(f"## REFERENCE ARTIFACTS\n\n{artifact_list}")
        if context.products:
            product_list = "\n".join(
                f"- **{p.name}**: {p.description or 'No description'}" + (f" - ${p.price:g}" if p.price else "")
                for p in context.products
            )
            parts.append(f"## RELEVANT PRODUCTS\n\n{product_list}")
        if context.preferences:
            pref_list = "\n".join(f"- **{k}**: {v}" for k, v in context.preferences.items())
            parts.append(f"## USER PREFERENCES\n\n{pref_list}")
        if context.additional_context:
            parts.append(f"## ADDITIONAL CONTEXT\n\n{context.additional_context}")

    if invocation.expected_output:
        parts.append(f"## EXPECTED OUTPUT\n\n{EXPECTED_OUTPUT_INSTRUCTIONS[invocation.expected_output]}")

    return "\n\n".join(parts)
