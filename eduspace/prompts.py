"""Prompt templates for the EduSpace mentor and content generators."""

from eduspace.models import GradeLevel, Mission

MISSION = """<task>
Generate a structured "Space Orienteering Lesson Plan".
Difficulty Level: {difficulty} ({level}).
Context: {context}
</task>

<structure>
It MUST follow this exact structure (like a teacher's guide):
1. Title & Main Orienteering Question (the big complex problem).
2. Warm-up Question (an icebreaker scenario).
3. Follow-up Questions (3 questions to deepen understanding of the environment/physics).
4. Decision Challenges (3 distinct "Choice" questions the student must answer to solve the main problem).
5. Possible Solutions (list of standard approaches).
6. Core Concepts (3-4 key scientific terms or theories needed to solve this, with definitions).
7. Hashtags.
</structure>

Return ONLY valid JSON with keys:
{{
  "title": string,
  "description": "The Main Orienteering Question",
  "learningObjective": string,
  "difficulty": "{difficulty}",
  "tags": [strings including hashtags],
  "warmUpQuestion": string,
  "followUpQuestions": [exactly 3 strings],
  "decisionChallenges": [exactly 3 strings, the small decisions],
  "possibleSolutions": [strings],
  "coreConcepts": [{{"term": string, "definition": string}}]
}}"""


MENTOR = """<role>
You are "Commander Nova," a Socratic AI mentor for ICAN Academy's "Space Thinking Expansion" program.
Your goal is to guide the student through a specific problem-solving process to develop cosmic thinking.
DO NOT give long lectures. Ask one question at a time.
</role>

<mission>
Current Mission: "{title}"
Main Question: "{description}"
</mission>

<core_concepts>
{concepts}
</core_concepts>

<protocol>
1. Start by asking the "Warm-up Question": "{warm_up}"
2. Wait for the student's answer. Discuss it briefly.
3. Move to the "Follow-up Questions". Ask them ONE by one.
   - Q1: {follow_up_1}
   - Q2: {follow_up_2}
   - Q3: {follow_up_3}
4. Once the context is understood, present the "Decision Challenges" (micro-decisions) one by one.
   These are the small decisions the student must make to build their final solution.
   - Challenge 1: {challenge_1}
   - Challenge 2: {challenge_2}
   - Challenge 3: {challenge_3}
5. Finally, help them synthesize their "Best Solution".
</protocol>

<tone level="{level}">
{tone}
</tone>

<locations>
If the student asks about a specific place (e.g. "Where is the Kennedy Space Center?"),
look it up and answer; the map links you cite are shown to the student.
</locations>"""


BOOTSTRAP = 'Mission Start. Please ask me the Warm-Up Question: "{warm_up}"'

DECISION_NOTICE = (
    'I have decided on "{question}". Choice: {decision}. '
    "Reasoning: {reasoning}. What is the next step?"
)


ILLUSTRATION = "Sci-fi concept art sketch, colorful, imaginative, visualizing: {context}. {variant}"

ILLUSTRATION_VARIANTS = [
    "Wide angle, establishing shot, futuristic environment.",
    "Close up detail, technical schematic style, blueprint elements.",
    "Action shot, dynamic angle, problem solving in progress.",
]


THESIS = """<task>
Act as a research assistant. Based on the chat history and the "Micro-Decisions" the student made, draft a solution paper.
</task>

<context>
Mission: "{title}"
Student Level: {level}
</context>

<chat_history>
{history}
</chat_history>

<decisions>
{decisions}
</decisions>

Return ONLY valid JSON with:
{{
  "title": "A creative title for the solution",
  "abstract": "Summary of the warm-up ({warm_up}) and context",
  "problemAnalysis": "Analysis of the follow-up questions: {follow_ups}",
  "alternatives": "The possible solutions that were considered but maybe not chosen",
  "proposedSolution": "The best solution based on the student's specific decisions",
  "conclusion": "Why is this the best solution? Justify using the decisions made"
}}"""


SLIDES = """<task>
Convert the following project data into 4 presentation slides for a student in {level}.
The presentation should focus on the DECISION JOURNEY.
</task>

<data>
{data}
</data>

<slides>
Slide 1: The Challenge.
Slide 2: The Options we weighed.
Slide 3: The Decisions we made.
Slide 4: The Final Solution.
</slides>

Return ONLY valid JSON:
{{"slides": [{{"title": string, "points": [max 3 short strings]}}]}}"""


LEVEL_CONTEXT = {
    GradeLevel.ELEMENTARY_LOWER: "Simple survival or moral choices (e.g., Saving a robot vs. saving food).",
    GradeLevel.ELEMENTARY_UPPER: "Resource management and basic science (e.g., Building a moon base).",
    GradeLevel.MIDDLE_SCHOOL: "Engineering trade-offs and environmental systems.",
    GradeLevel.HIGH_SCHOOL: "Complex socio-political and advanced technical dilemmas.",
}


def get_tone(level: GradeLevel) -> str:
    """Return the mentor tone directive for a grade level."""
    if level == GradeLevel.ELEMENTARY_LOWER:
        return "Use simple words, emojis, and ask 'What if?' questions. (Difficulty: Easy)"
    elif level == GradeLevel.HIGH_SCHOOL:
        return "Demand scientific evidence, cost-benefit analysis, and ethical justification. (Difficulty: Expert)"
    else:
        return "Encourage critical thinking and weigh pros/cons."


def build_mentor_prompt(level: GradeLevel, mission: Mission) -> str:
    if mission.core_concepts:
        concepts = "\n".join(f"- {c.term}: {c.definition}" for c in mission.core_concepts)
    else:
        concepts = "None loaded."
    follow_ups = mission.follow_up_questions
    challenges = mission.decision_challenges
    return MENTOR.format(
        title=mission.title,
        description=mission.description,
        concepts=concepts,
        warm_up=mission.warm_up_question,
        follow_up_1=follow_ups[0],
        follow_up_2=follow_ups[1],
        follow_up_3=follow_ups[2],
        challenge_1=challenges[0],
        challenge_2=challenges[1],
        challenge_3=challenges[2],
        level=level.value,
        tone=get_tone(level),
    )
