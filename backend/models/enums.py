import enum


class Mood(str, enum.Enum):
    """Five-point mood scale, stored by value."""

    VERY_HAPPY = "very_happy"
    HAPPY = "happy"
    NEUTRAL = "neutral"
    SAD = "sad"
    VERY_SAD = "very_sad"

    @property
    def score(self) -> int:
        return _MOOD_SCORES[self]

    @property
    def label(self) -> str:
        return self.value.replace("_", " ").title()

    @property
    def emoji(self) -> str:
        return _MOOD_EMOJI[self]


_MOOD_SCORES = {
    Mood.VERY_HAPPY: 5,
    Mood.HAPPY: 4,
    Mood.NEUTRAL: 3,
    Mood.SAD: 2,
    Mood.VERY_SAD: 1,
}

_MOOD_EMOJI = {
    Mood.VERY_HAPPY: "😄",
    Mood.HAPPY: "🙂",
    Mood.NEUTRAL: "😐",
    Mood.SAD: "😔",
    Mood.VERY_SAD: "😢",
}


class EntryCategory(str, enum.Enum):
    PERSONAL = "personal"
    WORK = "work"
    TRAVEL = "travel"
    HEALTH = "health"
    FAMILY = "family"
    FRIENDS = "friends"
    HOBBIES = "hobbies"
    GOALS = "goals"
    GRATITUDE = "gratitude"
    OTHER = "other"

    @property
    def label(self) -> str:
        return self.value.title()
