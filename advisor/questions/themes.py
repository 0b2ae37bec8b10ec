from __future__ import annotations

from .models import QuestionTheme

QUESTION_THEMES: tuple[QuestionTheme, ...] = (
    # Factual / constraint themes
    QuestionTheme(
        id="time-availability",
        category="factual",
        prompt="How much time do you have?",
        signal_key="timeAvailability",
        description="Time constraint - maps to time slots in minutes",
    ),
    QuestionTheme(
        id="budget-sensitivity",
        category="constraint",
        prompt="How important is staying within budget?",
        signal_key="budgetSensitivity",
        description="Budget constraint - maps to budget tiers",
    ),
    QuestionTheme(
        id="hunger-level",
        category="factual",
        prompt="How hungry are you right now?",
        signal_key="hungerLevel",
        description="Hunger level - decides whether dining is part of the plan",
    ),
    QuestionTheme(
        id="weather-dependency",
        category="constraint",
        prompt="How does weather affect your plans?",
        signal_key="weatherDependency",
        description="Weather constraint - maps to weather flexibility",
    ),
    # Preference themes
    QuestionTheme(
        id="energy-level",
        category="preference",
        prompt="What's your energy level right now?",
        signal_key="energyLevel",
        description="Energy preference - maps to venue pacing",
    ),
    QuestionTheme(
        id="adventure-novelty",
        category="preference",
        prompt="How adventurous are you feeling?",
        signal_key="adventureLevel",
        description="Novelty preference - familiar spots vs something new",
    ),
    QuestionTheme(
        id="experience-intensity",
        category="preference",
        prompt="What kind of experience are you looking for?",
        signal_key="experienceIntensity",
        description="Experience depth - quick hang vs immersive session",
    ),
    QuestionTheme(
        id="social-vibe",
        category="preference",
        prompt="What kind of social vibe are you looking for?",
        signal_key="socialDynamics",
        description="Social atmosphere - maps to vibe tags",
    ),
    QuestionTheme(
        id="activity-vs-dining",
        category="preference",
        prompt="What sounds more appealing?",
        signal_key="activityFocus",
        description="Activity vs dining focus - maps to venue category",
    ),
    QuestionTheme(
        id="setting-preference",
        category="preference",
        prompt="Where would you rather be?",
        signal_key="settingPreference",
        description="Indoor vs outdoor - maps to weather suitability",
    ),
)
