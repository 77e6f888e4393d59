"""
Habit categories and the preset habits offered during first-run setup.
"""

# Pseudo-category meaning "no filter" in habit listings
ALL_CATEGORIES = "All"

HABIT_CATEGORIES = [
    "Health",
    "Learning",
    "Fitness",
    "Personal",
    "Mental Health",
    "Productivity",
]

DEFAULT_CATEGORY = "Personal"

PRESET_HABITS = [
    {"name": "Morning Meditation", "category": "Health"},
    {"name": "Read 30 mins", "category": "Learning"},
    {"name": "Exercise", "category": "Fitness"},
    {"name": "Drink 8 glasses of water", "category": "Health"},
    {"name": "Write in journal", "category": "Personal"},
    {"name": "Practice gratitude", "category": "Mental Health"},
]
