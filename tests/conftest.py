import json

import pytest

from longform_scripts.application.outline_generator import outline_to_dict
from longform_scripts.domain.errors import TextGenerationError
from longform_scripts.domain.models import Chunk, GenerationResponse, Outline, Section
from longform_scripts.ports.interfaces import ITextGenerator


class FakeTextGenerator(ITextGenerator):
    """Replays scripted responses in order; exceptions in the script are raised."""

    def __init__(self, responses=()):
        self.responses = list(responses)
        self.requests = []

    def generate(self, request):
        self.requests.append(request)
        if not self.responses:
            raise TextGenerationError("no scripted response left", transient=False)
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return GenerationResponse(text=item, provider="fake")


def section_text(section: Section) -> str:
    return f"### {section.title}\n[{section.timestamp}] {section.content}. {' '.join(section.key_points)}"


def chunk_text(chunk: Chunk, skip=()) -> str:
    """Generated text that covers every section of `chunk` verbatim."""
    return "\n\n".join(section_text(s) for s in chunk.sections if s.title not in skip)


def outline_json(outline: Outline, fenced: bool = True) -> str:
    body = json.dumps(outline_to_dict(outline), indent=2)
    return f"```json\n{body}\n```" if fenced else body


@pytest.fixture
def fake_generator():
    return FakeTextGenerator()


@pytest.fixture
def simple_points():
    return [{"title": t} for t in ["Intro", "History", "Mechanism", "Cases", "Conclusion"]]


@pytest.fixture
def bridge_points():
    return [
        {"title": "Why Bridges Fall", "description": "Set up the question", "duration": 300},
        {"title": "A Short History of Collapse", "description": "Famous collapses", "duration": 600},
        {"title": "How Resonance Works", "description": "Physics of oscillation", "duration": 480},
        {"title": "Famous Failures Examined", "description": "Three case studies", "duration": 420},
        {"title": "Lessons for Engineers", "description": "Takeaways", "duration": 600},
    ]


@pytest.fixture
def outline():
    """40-minute outline: 15/15/10 minute chunks, five uniquely titled sections."""
    return Outline(
        title="Why Bridges Fall Down",
        total_minutes=40,
        overview="A tour of structural failure.",
        chunks=(
            Chunk(
                chunk_number=1,
                time_range=(0, 15),
                theme="Setting the stage",
                sections=(
                    Section(
                        timestamp="0:00",
                        title="Why Bridges Fall",
                        duration_minutes=5,
                        content="Introduce structural failure and the promise of the video",
                        key_points=("Failures are rare but instructive",),
                        visual_cues="[Visual: collapsing span]",
                    ),
                    Section(
                        timestamp="5:00",
                        title="A Short History of Collapse",
                        duration_minutes=10,
                        content="Walk through famous collapses from Roman aqueducts to modern spans",
                        key_points=("Tacoma Narrows shocked engineers",),
                        narrative_note="Tell it as a story",
                    ),
                ),
                transition_to_next="So what actually makes a bridge shake itself apart?",
            ),
            Chunk(
                chunk_number=2,
                time_range=(15, 30),
                theme="The physics",
                sections=(
                    Section(
                        timestamp="15:00",
                        title="How Resonance Works",
                        duration_minutes=8,
                        content="Explain natural frequency and periodic forcing",
                        key_points=("Wind can drive oscillation",),
                    ),
                    Section(
                        timestamp="23:00",
                        title="Famous Failures Examined",
                        duration_minutes=7,
                        content="Analyse three disasters in depth",
                        key_points=("Inspection gaps matter",),
                    ),
                ),
                transition_to_next="Which brings us to what engineers learned.",
            ),
            Chunk(
                chunk_number=3,
                time_range=(30, 40),
                theme="Takeaways",
                sections=(
                    Section(
                        timestamp="30:00",
                        title="Lessons for Engineers",
                        duration_minutes=10,
                        content="Summarise design lessons and close with a call to action",
                        key_points=("Redundancy saves lives",),
                    ),
                ),
            ),
        ),
        key_takeaways=("Resonance is dangerous", "Inspection matters"),
    )
