from typing import Any, Dict, Optional

from copyforge.modules.flows.schemas import FlowOutline, FlowOutlineEmail

DESIGN_EMAIL_STRUCTURE = """YOU MUST follow this EXACT structure for design emails:

EMAIL SUBJECT LINE:
[Compelling subject line - {subject_hint}]

PREVIEW TEXT:
[Preview text that appears after the subject line in the inbox - 40-60 characters]

---

HERO SECTION:
[Accent text - optional, 5 words max]

**[Headline - benefit-driven, 4-8 words]**

[Subhead - optional, 10 words max]

CTA: [Action-oriented button text]

---

SECTION 1: [Section Headline]
[1-2 sentences OR 3-5 bullet points covering the first key point]

CTA: [Optional CTA button text]

---

[Continue with one section per remaining key point...]

---

CALL-TO-ACTION SECTION:
**[Final headline summarizing the offer or value]**

[1 sentence reinforcing the main message]

CTA: [Strong final CTA button text]

---

DESIGN NOTES:
- [Visual or layout suggestions]
- [Image placement ideas]

CRITICAL: Follow this structure EXACTLY."""

LETTER_EMAIL_STRUCTURE = """Generate a letter-style email with:

SUBJECT LINE:
[Personal, conversational subject line]

---

[Greeting - "Hi [Name]," or "Hey there,"]

[Opening paragraph - warm, personal, sets context - 2-3 sentences max]

[Body paragraph(s) - key message, offer or update - 1-2 paragraphs]

[Call to action paragraph - 1-2 sentences]

[Sign off]
[Sender name/role]

P.S. [Optional - reinforcement or bonus detail]"""


def _position_note(sequence: int, total: int) -> str:
    if sequence == 1:
        return "- First email - set the tone for the entire series and make a strong first impression"
    if sequence == total:
        return "- Final email - create urgency and closure with a strong call to action"
    return "- Middle email - build on momentum from previous emails and keep engagement up"


def build_flow_email_prompt(email: FlowOutlineEmail, outline: FlowOutline, brand_info: str,
                            rag_context: Optional[str] = None) -> str:
    """Prompt for one email of an approved flow outline"""
    total = len(outline.emails)
    key_points = "\n".join(f"- {point}" for point in email.key_points) or "- (none given)"
    if email.email_type == "design":
        subject_hint = "welcoming and inviting" if email.sequence == 1 else "relevant to this email's position in the sequence"
        structure = DESIGN_EMAIL_STRUCTURE.format(subject_hint=subject_hint)
        style = "structured design"
    else:
        structure = LETTER_EMAIL_STRUCTURE
        style = "letter-style"

    return f"""You are writing Email {email.sequence} of {total} in a {outline.flow_name} automation.

<brand_info>
{brand_info}
</brand_info>
{rag_context or ""}
## FLOW CONTEXT

**Flow Goal:** {outline.goal}
**Target Audience:** {outline.target_audience}
**This Email's Position:** Email {email.sequence} of {total}

## THIS EMAIL'S DETAILS

**Title:** {email.title}
**Timing:** {email.timing}
**Purpose:** {email.purpose}
**Key Points to Cover:**
{key_points}
**Primary CTA:** {email.cta}

## YOUR TASK

Write a complete {style} email that fulfills this email's purpose within the larger flow.

{structure}

## IMPORTANT FLOW CONSIDERATIONS

- This is email {email.sequence} - reference the flow's progression appropriately
{_position_note(email.sequence, total)}
- Timing: {email.timing}
- Maintain consistency with brand voice throughout

Write the email now."""


def build_brief_message(metadata: Dict[str, Any]) -> str:
    """First user message of an email conversation spawned from an approved brief"""
    lines = [
        "## Email Brief",
        "",
        f"**Objective:** {metadata.get('objective') or 'Not specified'}",
        "",
        f"**Key Message:** {metadata.get('key_message') or 'Not specified'}",
        "",
        f"**Call to Action:** {metadata.get('call_to_action') or 'Not specified'}",
    ]
    for key, label in (
        ("subject_line_direction", "Subject Line Direction"),
        ("tone_notes", "Tone Notes"),
        ("target_segment", "Target Segment"),
    ):
        if metadata.get(key):
            lines += ["", f"**{label}:** {metadata[key]}"]
    lines += [
        "",
        "---",
        "",
        "Please write the email copy based on this brief. Create A/B/C versions with different approaches.",
    ]
    return "\n".join(lines)
