"""Exercise workflow: state, quiz and cloze logic, library and speech."""
from deutsch_meister.study.orchestrator import ExerciseOrchestrator
from deutsch_meister.study.speech import SpeechSequencer, SpeechSynthesizer, Voice
from deutsch_meister.study.state import (
    ExerciseState,
    ListLearningState,
    Phase,
    WordLookup,
)

__all__ = [
    "ExerciseOrchestrator",
    "ExerciseState",
    "ListLearningState",
    "Phase",
    "SpeechSequencer",
    "SpeechSynthesizer",
    "Voice",
    "WordLookup",
]
