from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class ExamplePrompt:
    title: str
    description: str
    prompt: str


class Prompts:
    main_system = """You are a sports performance assistant.
Help athletes understand their training data, plan workouts and improve results.

Guidelines:
- Ask for missing details (age, experience, goals) when they change the advice
- Give concrete numbers: paces, sets, reps, rest intervals, weekly volume
- Flag anything that sounds like an injury and suggest seeing a professional
- Keep answers focused; use short lists for plans and schedules
"""


EXAMPLE_PROMPTS: tuple[ExamplePrompt, ...] = (
    ExamplePrompt(
        title="Running Analysis",
        description="Analyze my 5K running performance",
        prompt=(
            "I've been running 5K three times a week. My times are 25:30, 24:45, "
            "and 26:10. How can I improve my performance?"
        ),
    ),
    ExamplePrompt(
        title="Workout Plan",
        description="Create a personalized workout routine",
        prompt=(
            "I'm a 35-year-old intermediate athlete looking to improve my overall "
            "strength and endurance. Can you create a 4-day workout plan for me?"
        ),
    ),
    ExamplePrompt(
        title="Performance Stats",
        description="Interpret my fitness metrics",
        prompt=(
            "My resting heart rate is 65 bpm, I can do 30 push-ups in one set, and I "
            "can run a mile in 8 minutes. How do these stats compare to average "
            "fitness levels?"
        ),
    ),
)
