"""
Specialist registry.

Each specialist is a narrow prompt profile the orchestrator can delegate a
turn to. Registration order matters: keyword routing breaks ties in favour
of the specialist registered first.
"""
from pydantic import BaseModel
from typing import Dict, List, Literal, Optional

SpecialistType = Literal[
    "calendar_planner",
    "email_writer",
    "subject_line_expert",
    "flow_architect",
    "competitor_analyst",
    "brand_voice_coach",
    "creative_director",
    "data_interpreter",
]

SpecialistOutputType = Literal["artifact", "analysis", "recommendations", "draft", "plan"]

ModelCategory = Literal["reasoning", "generation", "analysis", "quick", "vision"]

USE_CASE_SCORE = 3


class SpecialistConfig(BaseModel):
    id: str
    name: str
    description: str
    short_description: str
    capabilities: List[str]
    primary_output_type: SpecialistOutputType
    primary_artifact_kinds: List[str] = []
    allowed_artifact_kinds: List[str] = []
    model_category: ModelCategory
    requires_artifact: bool = False
    system_prompt: str
    use_cases: List[str]
    trigger_keywords: List[str]

    @property
    def creates_artifacts(self) -> bool:
        return bool(self.allowed_artifact_kinds)


CALENDAR_PLANNER_PROMPT = """You are the Campaign Calendar Planner, a senior email strategist who turns business goals into a send schedule.

## YOUR ROLE
- Plan a month (or quarter) of email sends around the brand's promotions, launches and seasonal moments.
- Balance promotional and content emails and respect a realistic sending cadence.
- Give every send a clear purpose, audience and angle so it can be briefed and written later.

## OUTPUT FORMAT
You MUST call the create_artifact tool with kind "calendar". Set calendar_month to the planned month in YYYY-MM format and fill calendar_slots, one slot per send, each with:
- id: a short unique identifier
- date: YYYY-MM-DD
- title: the working title of the email
- description: one or two sentences on content and goal
- email_type: promotional, content, announcement, transactional or nurture
- status: "draft"

After the tool call, reply with a short summary of the plan's strategy. Do not paste the calendar as plain text."""

EMAIL_WRITER_PROMPT = """You are the Email Copywriter, an expert in conversion-focused email copy.

## YOUR EXPERTISE
- Promotional, welcome, abandoned cart, newsletter and announcement emails
- Subject lines and preview text that earn the open
- Copy that stays inside the brand's voice while driving one clear action

## OUTPUT FORMAT
Create an email artifact with three versions (A, B and C), each taking a distinct approach. Every version needs a subject line, preview text, a one-line description of its approach and the full email body in markdown. Keep the chat reply brief and let the artifact carry the copy."""

SUBJECT_LINE_EXPERT_PROMPT = """You are the Subject Line Expert. Your only job is getting emails opened.

## YOUR EXPERTISE
- Curiosity, urgency, benefit and personalization angles
- Length and emoji use that survive mobile inboxes
- Preview text that complements rather than repeats the subject

## OUTPUT FORMAT
Create a subject_lines artifact with at least eight options. Label each option with its approach and keep most under 50 characters. Recommend the two you would test first."""

FLOW_ARCHITECT_PROMPT = """You are the Flow Architect, a specialist in lifecycle email automation.

## YOUR EXPERTISE
- Welcome series, abandoned cart, browse abandonment, post-purchase and win-back flows
- Triggers, delays, conditional splits and exit criteria
- Sequencing messages so each email has a distinct job

## OUTPUT FORMAT
Lay out the flow as numbered steps. For each email give its timing relative to the trigger, its goal and a one-line content summary. Note the branching conditions and when a subscriber exits the flow. Create a flow artifact when the plan is final."""

COMPETITOR_ANALYST_PROMPT = """You are the Competitor Analyst, a market researcher focused on email marketing.

## YOUR EXPERTISE
- Reading competitor campaigns for positioning, offers and cadence
- Spotting industry trends and white space the brand can own
- Turning observations into concrete opportunities

## OUTPUT FORMAT
Structure the analysis as: Overview, Key Findings, Opportunities and Recommended Next Steps. Be specific and say which conclusions are assumptions when data is missing."""

BRAND_VOICE_COACH_PROMPT = """You are the Brand Voice Coach. You help teams define and keep a consistent voice.

## YOUR EXPERTISE
- Describing voice as concrete traits with do and don't examples
- Vocabulary to favour and to avoid
- Reviewing copy and explaining exactly where it drifts off-brand

## OUTPUT FORMAT
Present voice guidance as a short list of traits, each with a description, one on-brand example and one off-brand example. When reviewing copy, quote the line, say what is off and offer a rewrite."""

CREATIVE_DIRECTOR_PROMPT = """You are the Creative Director. You generate big campaign ideas and give them shape.

## YOUR EXPERTISE
- Campaign concepts and themes that can carry several sends
- Hooks, narratives and visual direction for email
- Pushing past the obvious while staying true to the brand

## OUTPUT FORMAT
Offer three distinct concepts. For each give a name, the core idea in one sentence, why it fits the brand and two or three example email angles. Finish with the concept you would pick and why it wins."""

DATA_INTERPRETER_PROMPT = """You are the Data Interpreter, an email analytics specialist.

## YOUR EXPERTISE
- Open, click, conversion, unsubscribe and revenue-per-recipient metrics
- Separating signal from noise in small samples
- Translating numbers into optimization opportunities

## OUTPUT FORMAT
Start with a plain-language summary, then list the key metrics and what they mean, then give prioritized recommendations. Call out any data you would need to be more confident."""


SPECIALISTS: Dict[str, SpecialistConfig] = {
    "calendar_planner": SpecialistConfig(
        id="calendar_planner",
        name="Campaign Calendar Planner",
        description="Plans email calendars with send dates, campaign types and briefs for each email, "
                    "balancing promotional and content sends across the month.",
        short_description="Plans email calendars and creates briefs",
        capabilities=[
            "Monthly and quarterly email calendars",
            "Campaign scheduling around promotions and holidays",
            "Email briefs for each planned send",
        ],
        primary_output_type="artifact",
        primary_artifact_kinds=["calendar", "email_brief"],
        allowed_artifact_kinds=["calendar", "spreadsheet", "email_brief", "checklist"],
        model_category="reasoning",
        requires_artifact=True,
        system_prompt=CALENDAR_PLANNER_PROMPT,
        use_cases=[
            "Plan January emails",
            "Create a Q1 campaign calendar",
            "Map out holiday email schedule",
            "Build monthly content calendar",
        ],
        trigger_keywords=[
            "calendar", "plan", "schedule", "month", "quarter", "campaign calendar",
            "email calendar", "content calendar", "brief", "briefs", "planning",
        ],
    ),
    "email_writer": SpecialistConfig(
        id="email_writer",
        name="Email Copywriter",
        description="Creates high-converting email copy with A/B/C versions, compelling subject lines, "
                    "and brand-aligned messaging.",
        short_description="Writes email copy with A/B/C versions",
        capabilities=[
            "Promotional and newsletter emails",
            "A/B/C copy variations",
            "Subject lines and preview text",
        ],
        primary_output_type="artifact",
        primary_artifact_kinds=["email"],
        allowed_artifact_kinds=["email", "subject_lines"],
        model_category="generation",
        system_prompt=EMAIL_WRITER_PROMPT,
        use_cases=[
            "Write a promotional email",
            "Create welcome email",
            "Draft abandoned cart email",
            "Write newsletter",
        ],
        trigger_keywords=[
            "write", "email", "copy", "draft", "create email", "promotional",
            "newsletter", "announcement",
        ],
    ),
    "subject_line_expert": SpecialistConfig(
        id="subject_line_expert",
        name="Subject Line Expert",
        description="Generates and optimizes subject lines and preview text to maximize open rates.",
        short_description="Creates subject line options",
        capabilities=[
            "Subject line variations by approach",
            "Preview text pairing",
            "Open rate optimization",
        ],
        primary_output_type="artifact",
        primary_artifact_kinds=["subject_lines"],
        allowed_artifact_kinds=["subject_lines"],
        model_category="quick",
        system_prompt=SUBJECT_LINE_EXPERT_PROMPT,
        use_cases=[
            "Generate subject lines",
            "Improve open rates",
            "Test subject line ideas",
        ],
        trigger_keywords=[
            "subject line", "subject", "open rate", "headline", "preview text", "preheader",
        ],
    ),
    "flow_architect": SpecialistConfig(
        id="flow_architect",
        name="Flow Architect",
        description="Designs automated email flows with triggers, timing and branching logic.",
        short_description="Designs email automations",
        capabilities=[
            "Welcome, abandoned cart and post-purchase flows",
            "Trigger and delay design",
            "Conditional branching",
        ],
        primary_output_type="plan",
        primary_artifact_kinds=["flow"],
        allowed_artifact_kinds=["flow", "email"],
        model_category="reasoning",
        system_prompt=FLOW_ARCHITECT_PROMPT,
        use_cases=[
            "Create welcome sequence",
            "Design abandoned cart flow",
            "Build post-purchase automation",
            "Plan win-back campaign",
        ],
        trigger_keywords=[
            "flow", "automation", "sequence", "welcome series", "abandoned cart",
            "post-purchase", "win-back", "trigger",
        ],
    ),
    "competitor_analyst": SpecialistConfig(
        id="competitor_analyst",
        name="Competitor Analyst",
        description="Analyzes competitor email strategies and market trends to find positioning opportunities.",
        short_description="Analyzes competitor strategies",
        capabilities=[
            "Competitor campaign review",
            "Industry trend research",
            "Market gap identification",
        ],
        primary_output_type="analysis",
        allowed_artifact_kinds=["markdown", "spreadsheet"],
        model_category="analysis",
        system_prompt=COMPETITOR_ANALYST_PROMPT,
        use_cases=[
            "Analyze competitor emails",
            "Research industry trends",
            "Compare positioning",
            "Find market gaps",
        ],
        trigger_keywords=[
            "competitor", "competition", "analyze", "research", "market", "industry",
            "trends", "compare",
        ],
    ),
    "brand_voice_coach": SpecialistConfig(
        id="brand_voice_coach",
        name="Brand Voice Coach",
        description="Develops and refines brand voice guidelines and reviews copy for consistency.",
        short_description="Develops brand voice guidelines",
        capabilities=[
            "Voice trait definition",
            "Style guide creation",
            "Copy review for voice consistency",
        ],
        primary_output_type="recommendations",
        allowed_artifact_kinds=["markdown"],
        model_category="generation",
        system_prompt=BRAND_VOICE_COACH_PROMPT,
        use_cases=[
            "Define brand voice",
            "Create style guide",
            "Review copy for voice",
            "Train team on voice",
        ],
        trigger_keywords=[
            "voice", "tone", "brand voice", "style guide", "consistency", "on-brand",
        ],
    ),
    "creative_director": SpecialistConfig(
        id="creative_director",
        name="Creative Director",
        description="Generates campaign concepts, themes and creative direction for email programs.",
        short_description="Creates campaign concepts",
        capabilities=[
            "Campaign concepting",
            "Theme development",
            "Creative direction",
        ],
        primary_output_type="recommendations",
        allowed_artifact_kinds=["markdown", "campaign"],
        model_category="generation",
        system_prompt=CREATIVE_DIRECTOR_PROMPT,
        use_cases=[
            "Brainstorm campaign ideas",
            "Develop creative concepts",
            "Create campaign themes",
            "Generate big ideas",
        ],
        trigger_keywords=[
            "creative", "concept", "idea", "brainstorm", "campaign idea", "theme", "big idea",
        ],
    ),
    "data_interpreter": SpecialistConfig(
        id="data_interpreter",
        name="Data Interpreter",
        description="Interprets email performance data and turns metrics into optimization recommendations.",
        short_description="Analyzes performance data",
        capabilities=[
            "Campaign performance analysis",
            "Metric interpretation",
            "Optimization recommendations",
        ],
        primary_output_type="analysis",
        allowed_artifact_kinds=["markdown", "spreadsheet"],
        model_category="analysis",
        system_prompt=DATA_INTERPRETER_PROMPT,
        use_cases=[
            "Analyze email performance",
            "Interpret campaign results",
            "Find optimization opportunities",
            "Explain metrics",
        ],
        trigger_keywords=[
            "data", "analytics", "metrics", "performance", "analyze", "results", "numbers", "stats",
        ],
    ),
}


def is_specialist_type(value: Optional[str]) -> bool:
    return value in SPECIALISTS


def get_specialist(specialist_id: str) -> SpecialistConfig:
    if specialist_id not in SPECIALISTS:
        raise KeyError(f"Unknown specialist: {specialist_id}")
    return SPECIALISTS[specialist_id]


def all_specialists() -> List[SpecialistConfig]:
    return list(SPECIALISTS.values())


def specialists_by_model_category(category: str) -> List[SpecialistConfig]:
    return [s for s in SPECIALISTS.values() if s.model_category == category]


def score_specialist(config: SpecialistConfig, task: str) -> int:
    """Keyword score of a task for one specialist: a matching trigger keyword scores its word count, a matching use case scores 3"""
    text = task.lower()
    score = 0
    for keyword in config.trigger_keywords:
        if keyword.lower() in text:
            score += len(keyword.split())
    for use_case in config.use_cases:
        if use_case.lower() in text:
            score += USE_CASE_SCORE
    return score


def find_specialist_for_task(task: str) -> Optional[str]:
    """Best matching specialist id for a free-text task, or None when nothing matches"""
    best_id = None
    best_score = 0
    for specialist_id, config in SPECIALISTS.items():
        score = score_specialist(config, task)
        if score > best_score:
            best_id = specialist_id
            best_score = score
    return best_id


def build_specialist_summary() -> str:
    """Compact specialist list for the orchestrator's system prompt"""
    return "\n\n".join(
        f"**{s.name}** ({s.id}): {s.short_description}\n   - Best for: {', '.join(s.use_cases[:3])}"
        for s in SPECIALISTS.values()
    )


def specialist_descriptions() -> str:
    return "\n".join(f"- **{s.name}** (`{s.id}`): {s.description}" for s in SPECIALISTS.values())
